"""Tests for configuration validation."""

from recruitreach.config import validate_config


def _config(**overrides):
    config = {
        'HUNTER_API_KEY': 'h',
        'ROCKETREACH_API_KEY': '',
        'APOLLO_API_KEY': '',
        'PROVIDER_PRIORITY': ['hunter', 'rocketreach', 'apollo'],
        'DELIVERY_BACKEND': 'resend',
        'RESEND_API_KEY': 'r',
        'DRY_RUN': False,
        'SEND_MAX_ATTEMPTS': 3,
    }
    config.update(overrides)
    return config


def test_valid_config():
    assert validate_config(_config()) == []


def test_no_provider_keys():
    errors = validate_config(_config(HUNTER_API_KEY=''))

    assert any("No email providers configured" in e for e in errors)


def test_unknown_priority_entry():
    errors = validate_config(_config(PROVIDER_PRIORITY=['hunter', 'snov']))

    assert errors == ["Unknown providers in PROVIDER_PRIORITY: snov"]


def test_missing_delivery_credentials():
    assert validate_config(_config(RESEND_API_KEY='')) == ["RESEND_API_KEY not set"]
    assert validate_config(_config(DELIVERY_BACKEND='smtp')) == ["SMTP_USER or SMTP_PASSWORD not set"]


def test_dry_run_needs_no_delivery_credentials():
    assert validate_config(_config(RESEND_API_KEY='', DRY_RUN=True)) == []


def test_attempts_must_be_positive():
    assert validate_config(_config(SEND_MAX_ATTEMPTS=0)) == ["SEND_MAX_ATTEMPTS must be at least 1"]
