"""
Configuration for the recruiter outreach pipeline.

Everything is read from environment variables (a local .env file is
loaded first). Provider adapters are enabled purely by the presence of
their API key.
"""

import os
from dotenv import load_dotenv

load_dotenv()


def _get_bool(key: str, default: bool = False) -> bool:
    """Get a boolean from environment."""
    val = os.getenv(key, str(default)).lower()
    return val in ('true', '1', 'yes', 'on')


def _get_int(key: str, default: int) -> int:
    """Get an integer from environment."""
    try:
        return int(os.getenv(key, str(default)))
    except ValueError:
        return default


def _get_float(key: str, default: float) -> float:
    """Get a float from environment."""
    try:
        return float(os.getenv(key, str(default)))
    except ValueError:
        return default


def _get_list(key: str, default: str = "") -> list:
    """Get a comma-separated list from environment."""
    val = os.getenv(key, default)
    return [x.strip().lower() for x in val.split(",") if x.strip()]


# Provider ids known to the registry, in default priority order
KNOWN_PROVIDERS = ['hunter', 'rocketreach', 'apollo']

PIPELINE_CONFIG = {
    # Contact / email discovery providers
    'HUNTER_API_KEY': os.getenv('HUNTER_API_KEY', ''),
    'ROCKETREACH_API_KEY': os.getenv('ROCKETREACH_API_KEY', ''),
    'APOLLO_API_KEY': os.getenv('APOLLO_API_KEY', ''),
    'PROVIDER_PRIORITY': _get_list('PROVIDER_PRIORITY', ','.join(KNOWN_PROVIDERS)),

    # Delivery
    'DELIVERY_BACKEND': os.getenv('DELIVERY_BACKEND', 'resend').strip().lower(),
    'RESEND_API_KEY': os.getenv('RESEND_API_KEY', ''),
    'SMTP_HOST': os.getenv('SMTP_HOST', 'smtp.gmail.com'),
    'SMTP_PORT': _get_int('SMTP_PORT', 587),
    'SMTP_USER': os.getenv('SMTP_USER', ''),
    'SMTP_PASSWORD': os.getenv('SMTP_PASSWORD', ''),
    'SENDER_EMAIL': os.getenv('SENDER_EMAIL', 'outreach@resend.dev'),
    'SENDER_NAME': os.getenv('SENDER_NAME', 'Job Seeker'),

    # Dry run mode (don't actually send)
    'DRY_RUN': _get_bool('OUTREACH_DRY_RUN', False),

    # Retry policy: attempt n failing waits n * base delay before n + 1
    'SEND_MAX_ATTEMPTS': _get_int('SEND_MAX_ATTEMPTS', 3),
    'SEND_RETRY_BASE_DELAY': _get_float('SEND_RETRY_BASE_DELAY', 1.0),

    # Worker pool sizes
    'SEND_CONCURRENCY': _get_int('SEND_CONCURRENCY', 8),
    'RESOLVE_CONCURRENCY': _get_int('RESOLVE_CONCURRENCY', 4),

    # HTTP
    'REQUEST_TIMEOUT': _get_int('REQUEST_TIMEOUT', 20),

    # Companies created without enrichment get this location
    'DEFAULT_COMPANY_LOCATION': os.getenv('DEFAULT_COMPANY_LOCATION', 'United States'),
}

# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------
DB_PATH = os.getenv(
    'RECRUITREACH_DB_PATH',
    os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "data", "recruitreach.db"),
)


def get_config() -> dict:
    """Get the pipeline configuration."""
    return PIPELINE_CONFIG.copy()


def validate_config(config: dict = None) -> list[str]:
    """Validate configuration and return list of errors."""
    config = config if config is not None else PIPELINE_CONFIG
    errors = []

    if not any(config.get(f'{name.upper()}_API_KEY') for name in KNOWN_PROVIDERS):
        errors.append("No email providers configured (set HUNTER_API_KEY, ROCKETREACH_API_KEY or APOLLO_API_KEY)")

    unknown = [p for p in config.get('PROVIDER_PRIORITY', []) if p not in KNOWN_PROVIDERS]
    if unknown:
        errors.append(f"Unknown providers in PROVIDER_PRIORITY: {', '.join(unknown)}")

    backend = config.get('DELIVERY_BACKEND')
    if not config.get('DRY_RUN'):
        if backend == 'resend' and not config.get('RESEND_API_KEY'):
            errors.append("RESEND_API_KEY not set")
        elif backend == 'smtp' and not (config.get('SMTP_USER') and config.get('SMTP_PASSWORD')):
            errors.append("SMTP_USER or SMTP_PASSWORD not set")
        elif backend not in ('resend', 'smtp'):
            errors.append(f"Unknown DELIVERY_BACKEND: {backend}")

    if config.get('SEND_MAX_ATTEMPTS', 0) < 1:
        errors.append("SEND_MAX_ATTEMPTS must be at least 1")

    return errors
