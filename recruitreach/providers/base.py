"""
Common contract for contact / email discovery providers.

An adapter wraps one third-party API and exposes up to three lookups:

- find_email(first_name, last_name, domain)   single person
- find_all_emails(domain, company_name)       bulk domain search
- find_company(company_name, domain)          company enrichment

Adapters never raise across this boundary. Network failures, bad
statuses and malformed payloads come back as results with status
'error' or 'limit_reached' so the resolver can decide what to do next.
"""

import logging
import re
from dataclasses import dataclass, field, asdict
from typing import Optional

import requests

from recruitreach.config import PIPELINE_CONFIG

logger = logging.getLogger(__name__)

# Status values shared by every adapter
FOUND = 'found'
NOT_FOUND = 'not_found'
LIMIT_REACHED = 'limit_reached'
ERROR = 'error'
EMAIL_LOCKED = 'email_locked'  # person found, email hidden behind a paid plan

_LIMIT_STATUS_CODES = (401, 402, 429)
_LIMIT_MARKERS = ('limit', 'quota')

# Titles / keywords used to pick out recruiting contacts
_RECRUITING_RE = re.compile(r'\b(hr|recruit\w*|talent|human resources|people)\b', re.IGNORECASE)


@dataclass
class LookupResult:
    """Outcome of a single-person email lookup."""
    email: Optional[str] = None
    status: str = NOT_FOUND
    error: Optional[str] = None
    provider: Optional[str] = None
    confidence: Optional[int] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class RawContact:
    """A contact as reported by a provider, before it reaches the store."""
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    title: Optional[str] = None
    department: Optional[str] = None
    linkedin_url: Optional[str] = None
    external_id: Optional[str] = None
    status: str = FOUND
    provider: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class BulkLookupResult:
    """Outcome of a bulk domain lookup."""
    contacts: list = field(default_factory=list)  # List[RawContact]
    status: str = FOUND
    error: Optional[str] = None
    provider: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status in (ERROR, LIMIT_REACHED)


@dataclass
class CompanyMatch:
    """Company details returned by an enrichment provider."""
    name: str
    domain: Optional[str] = None
    industry: Optional[str] = None
    size: Optional[str] = None
    external_id: Optional[str] = None
    provider: Optional[str] = None


class ProviderHTTPError(Exception):
    """Raised inside an adapter when a call fails; never leaves the adapter."""

    def __init__(self, status: str, message: str):
        super().__init__(message)
        self.status = status


def is_recruiting_title(text: Optional[str]) -> bool:
    """True if a position or department string looks like recruiting/HR."""
    if not text:
        return False
    return _RECRUITING_RE.search(text) is not None


class EmailProvider:
    """
    Base class for provider adapters.

    Subclasses set `name` and `key`, flip the supports_* flags for the
    lookups they implement, and override the matching _find_* methods.
    """

    name = "provider"
    supports_single = False
    supports_bulk = False
    supports_company = False

    def __init__(self, api_key: str, timeout: Optional[int] = None):
        self.api_key = api_key
        self.timeout = timeout or PIPELINE_CONFIG.get('REQUEST_TIMEOUT', 20)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name}>"

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    def _request(self, method: str, url: str, **kwargs) -> dict:
        """
        Make a JSON request and return the decoded body.

        Raises ProviderHTTPError with status 'limit_reached' for quota
        style failures and 'error' for everything else.
        """
        kwargs.setdefault('timeout', self.timeout)
        logger.debug("%s %s %s", self.name, method, url)
        try:
            resp = requests.request(method, url, **kwargs)
        except requests.RequestException as e:
            raise ProviderHTTPError(ERROR, str(e)) from e

        if resp.status_code >= 400:
            body = (resp.text or '')[:300]
            lowered = body.lower()
            if resp.status_code in _LIMIT_STATUS_CODES or any(m in lowered for m in _LIMIT_MARKERS):
                logger.warning("%s limit reached (HTTP %d)", self.name, resp.status_code)
                raise ProviderHTTPError(LIMIT_REACHED, 'API limit reached')
            raise ProviderHTTPError(ERROR, f"HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise ProviderHTTPError(ERROR, f"Malformed response: {e}") from e
        if not isinstance(data, dict):
            raise ProviderHTTPError(ERROR, "Malformed response: expected a JSON object")
        return data

    # ------------------------------------------------------------------
    # Public lookups (never raise)
    # ------------------------------------------------------------------

    def find_email(self, first_name: str, last_name: str, domain: str) -> LookupResult:
        """Find one person's email at a domain."""
        if not self.supports_single:
            return LookupResult(status=ERROR, error='Single lookup not supported', provider=self.name)
        try:
            result = self._find_email(first_name, last_name, domain)
        except ProviderHTTPError as e:
            return LookupResult(status=e.status, error=str(e), provider=self.name)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.error("%s returned an unexpected payload: %s", self.name, e)
            return LookupResult(status=ERROR, error=f"Malformed response: {e}", provider=self.name)
        result.provider = self.name
        return result

    def find_all_emails(self, domain: str, company_name: Optional[str] = None) -> BulkLookupResult:
        """Find every recruiting contact the provider knows for a domain."""
        if not self.supports_bulk:
            return BulkLookupResult(status=ERROR, error='Bulk lookup not supported', provider=self.name)
        try:
            contacts = self._find_all_emails(domain, company_name)
        except ProviderHTTPError as e:
            return BulkLookupResult(status=e.status, error=str(e), provider=self.name)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.error("%s returned an unexpected payload: %s", self.name, e)
            return BulkLookupResult(status=ERROR, error=f"Malformed response: {e}", provider=self.name)

        for contact in contacts:
            contact.provider = self.name
        return BulkLookupResult(
            contacts=contacts,
            status=FOUND if contacts else NOT_FOUND,
            provider=self.name,
        )

    def find_company(self, company_name: str, domain: Optional[str] = None) -> Optional[CompanyMatch]:
        """Look up company details. Returns None when unsupported or on failure."""
        if not self.supports_company:
            return None
        try:
            match = self._find_company(company_name, domain)
        except ProviderHTTPError as e:
            logger.warning("%s company lookup failed: %s", self.name, e)
            return None
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.error("%s returned an unexpected payload: %s", self.name, e)
            return None
        if match:
            match.provider = self.name
        return match

    # ------------------------------------------------------------------
    # Provider-specific implementations
    # ------------------------------------------------------------------

    def _find_email(self, first_name: str, last_name: str, domain: str) -> LookupResult:
        raise NotImplementedError

    def _find_all_emails(self, domain: str, company_name: Optional[str]) -> list:
        raise NotImplementedError

    def _find_company(self, company_name: str, domain: Optional[str]) -> Optional[CompanyMatch]:
        raise NotImplementedError
