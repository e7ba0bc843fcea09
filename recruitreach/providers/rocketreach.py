"""RocketReach adapter: profile search by recruiting titles, profile lookup by name."""

import logging
from typing import Optional

from recruitreach.providers.base import (
    EmailProvider,
    LookupResult,
    RawContact,
    EMAIL_LOCKED,
    FOUND,
    NOT_FOUND,
)

logger = logging.getLogger(__name__)

ROCKETREACH_BASE_URL = "https://api.rocketreach.co/v1/api"

SEARCH_TITLES = [
    'recruiter', 'talent acquisition', 'hr manager', 'human resources',
    'university recruiting', 'people operations',
]

# RocketReach grades each email; anything other than these is treated as unverified
_GRADE_STATUS = {
    'valid': 'valid',
    'invalid': 'invalid',
    'A': 'high_confidence',
    'A-': 'high_confidence',
    'B': FOUND,
    'C': 'low_confidence',
}


def employer_from_domain(domain: str) -> str:
    """acme.co.uk -> acme"""
    return domain.split('.')[0] if domain else ''


def _split_name(full_name: Optional[str]) -> tuple[Optional[str], Optional[str]]:
    if not full_name:
        return None, None
    parts = full_name.strip().split()
    if len(parts) == 1:
        return parts[0], None
    return parts[0], ' '.join(parts[1:])


def _first_email(profile: dict) -> tuple[Optional[str], str]:
    """Pick the first professional email (falling back to any) and its status."""
    emails = [e for e in profile.get('emails') or [] if e.get('email')]
    if not emails:
        return None, EMAIL_LOCKED
    professional = [e for e in emails if e.get('type') == 'professional']
    chosen = (professional or emails)[0]
    grade = chosen.get('smtp_valid') or chosen.get('grade')
    return chosen['email'], _GRADE_STATUS.get(grade, FOUND)


class RocketReachProvider(EmailProvider):
    name = "RocketReach"
    key = "rocketreach"
    supports_single = True
    supports_bulk = True

    def __init__(self, api_key: str, timeout: Optional[int] = None, page_size: int = 25):
        super().__init__(api_key, timeout)
        self.page_size = page_size

    @property
    def _headers(self) -> dict:
        return {'Content-Type': 'application/json', 'Api-Key': self.api_key}

    def _find_email(self, first_name: str, last_name: str, domain: str) -> LookupResult:
        params = {
            'name': f"{first_name} {last_name}".strip(),
            'current_employer': employer_from_domain(domain),
        }
        profile = self._request(
            "GET", f"{ROCKETREACH_BASE_URL}/lookupProfile", params=params, headers=self._headers
        )
        email, status = _first_email(profile)
        if not email:
            return LookupResult(status=NOT_FOUND)
        return LookupResult(email=email, status=status)

    def _find_all_emails(self, domain: str, company_name: Optional[str]) -> list:
        payload = {
            'start': 1,
            'page_size': self.page_size,
            'query': {
                'current_employer': [company_name or employer_from_domain(domain)],
                'current_title': SEARCH_TITLES,
            },
        }
        data = self._request("POST", f"{ROCKETREACH_BASE_URL}/search", json=payload, headers=self._headers)

        contacts = []
        for profile in data.get('profiles') or []:
            email, status = _first_email(profile)
            first_name, last_name = _split_name(profile.get('name'))
            contacts.append(RawContact(
                email=email,
                first_name=profile.get('first_name') or first_name,
                last_name=profile.get('last_name') or last_name,
                title=profile.get('current_title'),
                linkedin_url=profile.get('linkedin_url'),
                external_id=str(profile['id']) if profile.get('id') is not None else None,
                status=status,
            ))
        logger.debug("RocketReach: %d profiles at %s", len(contacts), domain)
        return contacts
