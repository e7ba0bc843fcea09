"""Hunter.io adapter: email-finder for single people, domain-search for bulk."""

import logging
from typing import Optional

from recruitreach.providers.base import (
    EmailProvider,
    LookupResult,
    RawContact,
    FOUND,
    NOT_FOUND,
    is_recruiting_title,
)

logger = logging.getLogger(__name__)

HUNTER_BASE_URL = "https://api.hunter.io/v2"

# Hunter department codes (what their API expects)
_DEPT_ALIASES = {
    "human_resources": "hr",
    "human-resources": "hr",
    "human resources": "hr",
    "recruiting": "hr",
    "talent": "hr",
    "talent_acquisition": "hr",
    "talent-acquisition": "hr",
    "talent acquisition": "hr",
    "people operations": "hr",
}


def normalize_department(dept: Optional[str]) -> Optional[str]:
    if not dept:
        return None
    d = dept.strip().lower()
    return _DEPT_ALIASES.get(d, d)


def _confidence_status(confidence: Optional[int]) -> str:
    """Translate Hunter's 0-100 confidence score into a lookup status."""
    if confidence is None:
        return FOUND
    if confidence >= 90:
        return 'high_confidence'
    if confidence < 50:
        return 'low_confidence'
    return FOUND


def _entry_status(entry: dict) -> str:
    verification = entry.get('verification') or {}
    return verification.get('status') or _confidence_status(entry.get('confidence') or entry.get('score'))


class HunterProvider(EmailProvider):
    name = "Hunter.io"
    key = "hunter"
    supports_single = True
    supports_bulk = True

    def __init__(self, api_key: str, timeout: Optional[int] = None, department: str = "hr", limit: int = 25):
        super().__init__(api_key, timeout)
        self.department = normalize_department(department)
        self.limit = limit

    def _find_email(self, first_name: str, last_name: str, domain: str) -> LookupResult:
        params = {
            "domain": domain,
            "first_name": first_name,
            "last_name": last_name,
            "api_key": self.api_key,
        }
        data = self._request("GET", f"{HUNTER_BASE_URL}/email-finder", params=params).get("data") or {}
        email = data.get("email")
        if not email:
            return LookupResult(status=NOT_FOUND)
        return LookupResult(email=email, status=_entry_status(data), confidence=data.get("score"))

    def _find_all_emails(self, domain: str, company_name: Optional[str]) -> list:
        params = {"domain": domain, "limit": self.limit, "api_key": self.api_key}
        if self.department:
            params["department"] = self.department

        data = self._request("GET", f"{HUNTER_BASE_URL}/domain-search", params=params).get("data") or {}
        emails = [e for e in data.get("emails") or [] if e.get("value")]

        hr_emails = [
            e for e in emails
            if normalize_department(e.get("department")) == "hr" or is_recruiting_title(e.get("position"))
        ]
        if not hr_emails and emails:
            logger.debug("Hunter: no HR-tagged emails at %s, keeping all %d", domain, len(emails))
            hr_emails = emails

        return [
            RawContact(
                email=e.get("value"),
                first_name=e.get("first_name"),
                last_name=e.get("last_name"),
                title=e.get("position"),
                department=e.get("department"),
                linkedin_url=e.get("linkedin"),
                status=_entry_status(e),
            )
            for e in hr_emails
        ]
