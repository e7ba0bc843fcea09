"""Shared fixtures: a throwaway SQLite store, scripted providers and delivery."""

import pytest

from recruitreach import db
from recruitreach.providers import refresh_registry
from recruitreach.providers.base import (
    BulkLookupResult,
    CompanyMatch,
    EmailProvider,
    LookupResult,
    FOUND,
    NOT_FOUND,
)
from recruitreach.sender import SendResult


@pytest.fixture
def store(tmp_path, monkeypatch):
    """Point the store at a fresh database file."""
    monkeypatch.setattr(db, "DB_PATH", str(tmp_path / "test.db"))
    db.init_db()
    return db


@pytest.fixture(autouse=True)
def _fresh_registry():
    refresh_registry()
    yield
    refresh_registry()


class FakeProvider(EmailProvider):
    """
    Provider with canned answers.

    `single` is a LookupResult (or callable taking first, last, domain),
    `bulk` a BulkLookupResult or a list of RawContact, `company` a CompanyMatch.
    """

    def __init__(self, name, single=None, bulk=None, company=None):
        super().__init__(api_key="test", timeout=1)
        self.name = name
        self.key = name.lower()
        self.single = single
        self.bulk = bulk
        self.company = company
        self.supports_single = single is not None
        self.supports_bulk = bulk is not None
        self.supports_company = company is not None
        self.calls = []

    def find_email(self, first_name, last_name, domain):
        self.calls.append(('single', first_name, last_name, domain))
        result = self.single(first_name, last_name, domain) if callable(self.single) else self.single
        return LookupResult(
            email=result.email,
            status=result.status,
            error=result.error,
            provider=self.name,
            confidence=result.confidence,
        )

    def find_all_emails(self, domain, company_name=None):
        self.calls.append(('bulk', domain, company_name))
        if isinstance(self.bulk, BulkLookupResult):
            return self.bulk
        for contact in self.bulk:
            contact.provider = self.name
        return BulkLookupResult(contacts=list(self.bulk), status=FOUND if self.bulk else NOT_FOUND, provider=self.name)

    def find_company(self, company_name, domain=None):
        self.calls.append(('company', company_name, domain))
        if isinstance(self.company, CompanyMatch):
            self.company.provider = self.name
            return self.company
        return None


class FakeDelivery:
    """Delivery backend that replays a script of outcomes per recipient."""

    name = "fake"

    def __init__(self, outcomes=None, default=True):
        self.outcomes = outcomes or {}   # email -> list of bool / SendResult
        self.default = default
        self.sent = []                   # (sender, to, subject, html)

    def send(self, sender, to, subject, html):
        self.sent.append((sender, to, subject, html))
        script = self.outcomes.get(to[0])
        outcome = script.pop(0) if script else self.default
        if isinstance(outcome, SendResult):
            return outcome
        if outcome:
            return SendResult(success=True, message_id=f"msg-{len(self.sent)}")
        return SendResult(success=False, message="Rejected", error="mailbox unavailable")

    def attempts_for(self, email):
        return sum(1 for _, to, _, _ in self.sent if to[0] == email)


@pytest.fixture
def fake_provider():
    return FakeProvider


@pytest.fixture
def fake_delivery():
    return FakeDelivery


@pytest.fixture
def no_sleep():
    """Records requested backoff waits instead of sleeping."""
    waits = []
    return waits, waits.append
