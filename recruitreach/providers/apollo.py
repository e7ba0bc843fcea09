"""
Apollo.io adapter.

Apollo is the only provider that can enrich the company itself
(organization search), so the resolver asks it first for company
details. People search often returns contacts whose email is held
back on free plans; those come through with status 'email_locked'
and no email so the caller can report it or try other providers.
"""

import logging
from typing import Optional

from recruitreach.providers.base import (
    EmailProvider,
    CompanyMatch,
    LookupResult,
    RawContact,
    EMAIL_LOCKED,
    NOT_FOUND,
)

logger = logging.getLogger(__name__)

APOLLO_BASE_URL = "https://api.apollo.io/v1"

PERSON_TITLES = [
    'recruiter', 'recruitment', 'talent acquisition', 'hr', 'human resources',
    'people operations', 'talent partner', 'hiring manager', 'head of talent',
    'director of recruiting', 'vp of people', 'chief people officer',
]

_LOCKED_PREFIX = 'email_not_unlocked'


def _usable_email(email: Optional[str]) -> Optional[str]:
    if not email or email.startswith(_LOCKED_PREFIX):
        return None
    return email


class ApolloProvider(EmailProvider):
    name = "Apollo.io"
    key = "apollo"
    supports_single = True
    supports_bulk = True
    supports_company = True

    def __init__(self, api_key: str, timeout: Optional[int] = None, per_page: int = 50,
                 locations: Optional[list] = None):
        super().__init__(api_key, timeout)
        self.per_page = per_page
        self.locations = locations

    @property
    def _headers(self) -> dict:
        return {
            'Content-Type': 'application/json',
            'Cache-Control': 'no-cache',
            'X-Api-Key': self.api_key,
        }

    def _post(self, endpoint: str, payload: dict) -> dict:
        return self._request("POST", f"{APOLLO_BASE_URL}{endpoint}", json=payload, headers=self._headers)

    def _find_company(self, company_name: str, domain: Optional[str]) -> Optional[CompanyMatch]:
        payload = {'q_organization_name': company_name, 'page': 1, 'per_page': 1}
        if domain:
            payload['q_organization_domains'] = [domain]
        if self.locations:
            payload['organization_locations'] = self.locations

        organizations = self._post('/organizations/search', payload).get('organizations') or []
        if not organizations:
            logger.info("Apollo: no organization matching %r", company_name)
            return None

        org = organizations[0]
        employees = org.get('estimated_num_employees')
        return CompanyMatch(
            name=org.get('name') or company_name,
            domain=org.get('primary_domain') or domain,
            industry=org.get('industry'),
            size=f"{employees} employees" if employees else None,
            external_id=org.get('id'),
        )

    def _find_all_emails(self, domain: str, company_name: Optional[str]) -> list:
        payload = {
            'q_organization_domains': [domain],
            'person_titles': PERSON_TITLES,
            'page': 1,
            'per_page': self.per_page,
        }
        if self.locations:
            payload['person_locations'] = self.locations

        people = self._post('/mixed_people/search', payload).get('people') or []
        contacts = []
        for person in people:
            email = _usable_email(person.get('email'))
            functions = person.get('functions') or person.get('departments') or []
            contacts.append(RawContact(
                email=email,
                first_name=person.get('first_name'),
                last_name=person.get('last_name'),
                title=person.get('title'),
                department=functions[0] if functions else None,
                linkedin_url=person.get('linkedin_url'),
                external_id=person.get('id'),
                status=(person.get('email_status') or 'unknown') if email else EMAIL_LOCKED,
            ))
        logger.debug("Apollo: %d people at %s", len(contacts), domain)
        return contacts

    def _find_email(self, first_name: str, last_name: str, domain: str) -> LookupResult:
        payload = {'first_name': first_name, 'last_name': last_name, 'domain': domain}
        person = self._post('/people/match', payload).get('person') or {}
        email = _usable_email(person.get('email'))
        if not email:
            return LookupResult(status=NOT_FOUND)
        return LookupResult(email=email, status=person.get('email_status') or 'unknown')
