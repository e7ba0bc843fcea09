"""
Multi-provider contact resolution.

Two strategies:

1. Sequential fallback (find_email_with_fallback) - one person, providers
   tried strictly in priority order, stopping at the first email. Later
   providers are never queried once one succeeds, so their quota is kept.

2. Parallel fan-out (find_all_contacts) - every bulk-capable provider is
   queried at once for a domain, all results are awaited and merged, and
   duplicates are dropped by exact email match (first occurrence wins).

Contacts that come back without an email (e.g. Apollo free plans) can be
pushed through strategy 1 with fill_missing_emails.
"""

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Optional

from recruitreach.config import PIPELINE_CONFIG
from recruitreach.providers import get_registry
from recruitreach.providers.base import (
    BulkLookupResult,
    CompanyMatch,
    RawContact,
    ERROR,
    LIMIT_REACHED,
    NOT_FOUND,
)

logger = logging.getLogger(__name__)

NO_PROVIDERS = 'no_providers'
ALL_EXHAUSTED = 'all_exhausted'


@dataclass
class FallbackResult:
    """Outcome of a sequential single-person lookup."""
    email: Optional[str] = None
    status: str = NOT_FOUND
    provider: Optional[str] = None
    confidence: Optional[int] = None
    tried: list = field(default_factory=list)
    errors: dict = field(default_factory=dict)  # provider name -> error text

    def to_dict(self) -> dict:
        return {
            'email': self.email,
            'status': self.status,
            'provider': self.provider,
            'confidence': self.confidence,
            'tried': list(self.tried),
            'errors': dict(self.errors),
        }


@dataclass
class ResolutionResult:
    """Merged outcome of a bulk fan-out."""
    contacts: list = field(default_factory=list)         # RawContact with email, deduplicated
    unresolved: list = field(default_factory=list)       # RawContact without email
    provider_errors: dict = field(default_factory=dict)  # provider name -> error text
    providers_queried: list = field(default_factory=list)
    status: str = 'ok'

    @property
    def locked_count(self) -> int:
        return len(self.unresolved)


# ---------------------------------------------------------------------------
# Sequential single-target fallback
# ---------------------------------------------------------------------------

def find_email_with_fallback(
    first_name: str,
    last_name: str,
    domain: str,
    providers: Optional[list] = None,
) -> FallbackResult:
    """
    Try single-lookup providers in priority order until one returns an email.

    Args:
        first_name: Person's first name
        last_name: Person's last name
        domain: Company email domain
        providers: Provider list (defaults to the configured registry)

    Returns:
        FallbackResult. status is 'no_providers' when nothing is configured,
        and provider is 'all_exhausted' when every provider came up empty.
    """
    providers = providers if providers is not None else get_registry()
    single = [p for p in providers if p.supports_single]

    if not single:
        return FallbackResult(status=NO_PROVIDERS, provider='none')

    result = FallbackResult()
    for provider in single:
        logger.info("Trying %s for %s %s at %s", provider.name, first_name, last_name, domain)
        result.tried.append(provider.name)

        lookup = provider.find_email(first_name, last_name, domain)

        if lookup.email:
            logger.info("Found email with %s: %s", provider.name, lookup.email)
            result.email = lookup.email
            result.status = lookup.status
            result.provider = provider.name
            result.confidence = lookup.confidence
            return result

        if lookup.status == LIMIT_REACHED:
            logger.info("%s limit reached, trying next provider...", provider.name)
            result.errors[provider.name] = lookup.error or LIMIT_REACHED
        elif lookup.status == ERROR:
            logger.warning("%s failed (%s), trying next provider...", provider.name, lookup.error)
            result.errors[provider.name] = lookup.error or ERROR
        else:
            logger.info("%s did not find email, trying next provider...", provider.name)

    result.status = NOT_FOUND
    result.provider = ALL_EXHAUSTED
    return result


# ---------------------------------------------------------------------------
# Parallel bulk fan-out
# ---------------------------------------------------------------------------

def _name_key(contact: RawContact) -> Optional[tuple]:
    if not contact.first_name and not contact.last_name:
        return None
    return ((contact.first_name or '').strip().lower(), (contact.last_name or '').strip().lower())


def merge_contacts(results: list) -> tuple[list, list]:
    """
    Merge per-provider bulk results (in priority order).

    Emails are compared exactly, so 'Ana@acme.com' and 'ana@acme.com'
    are kept as two contacts. People without an email are returned
    separately, minus anyone already covered by a resolved contact.

    Returns:
        (contacts, unresolved)
    """
    contacts = []
    seen_emails = set()
    resolved_names = set()
    unresolved = {}

    for result in results:
        for contact in result.contacts:
            if contact.email:
                if contact.email in seen_emails:
                    continue
                seen_emails.add(contact.email)
                contacts.append(contact)
                name = _name_key(contact)
                if name:
                    resolved_names.add(name)
            else:
                name = _name_key(contact)
                if name and name not in unresolved:
                    unresolved[name] = contact

    pending = [c for name, c in unresolved.items() if name not in resolved_names]
    return contacts, pending


def find_all_contacts(
    domain: str,
    company_name: Optional[str] = None,
    providers: Optional[list] = None,
    max_workers: Optional[int] = None,
) -> ResolutionResult:
    """
    Query every bulk-capable provider concurrently and merge the results.

    A provider that errors contributes no contacts and is listed in
    provider_errors; it never fails the whole resolution.
    """
    providers = providers if providers is not None else get_registry()
    bulk = [p for p in providers if p.supports_bulk]

    if not bulk:
        return ResolutionResult(status=NO_PROVIDERS)

    workers = max(1, min(len(bulk), max_workers or len(bulk)))
    logger.info("Fanning out to %s for %s", ', '.join(p.name for p in bulk), domain)

    results = []
    errors = {}
    with ThreadPoolExecutor(max_workers=workers) as ex:
        futures = [(p, ex.submit(p.find_all_emails, domain, company_name)) for p in bulk]
        for provider, future in futures:
            try:
                result = future.result()
            except Exception as e:
                logger.exception("%s raised during bulk lookup", provider.name)
                result = BulkLookupResult(status=ERROR, error=str(e), provider=provider.name)

            if result.failed:
                logger.warning("%s bulk lookup failed: %s (%s)", provider.name, result.error, result.status)
                errors[provider.name] = result.error or result.status
            else:
                logger.info("%s returned %d contacts", provider.name, len(result.contacts))
            results.append(result)

    contacts, unresolved = merge_contacts(results)
    return ResolutionResult(
        contacts=contacts,
        unresolved=unresolved,
        provider_errors=errors,
        providers_queried=[p.name for p in bulk],
    )


def fill_missing_emails(
    unresolved: list,
    domain: str,
    providers: Optional[list] = None,
    max_workers: Optional[int] = None,
) -> list:
    """
    Run sequential fallback for each named contact that has no email.

    Each person's providers are still tried one at a time; only different
    people are looked up concurrently.

    Returns:
        RawContacts that now carry an email
    """
    named = [c for c in unresolved if c.first_name and c.last_name]
    if not named:
        return []

    providers = providers if providers is not None else get_registry()
    workers = max(1, min(len(named), max_workers or PIPELINE_CONFIG.get('RESOLVE_CONCURRENCY', 4)))

    found = []
    with ThreadPoolExecutor(max_workers=workers) as ex:
        futures = [
            (c, ex.submit(find_email_with_fallback, c.first_name, c.last_name, domain, providers))
            for c in named
        ]
        for contact, future in futures:
            result = future.result()
            if not result.email:
                continue
            found.append(RawContact(
                email=result.email,
                first_name=contact.first_name,
                last_name=contact.last_name,
                title=contact.title,
                department=contact.department,
                linkedin_url=contact.linkedin_url,
                external_id=contact.external_id,
                status=result.status,
                provider=result.provider,
            ))
    return found


# ---------------------------------------------------------------------------
# Company resolution
# ---------------------------------------------------------------------------

def derive_company_identity(company_input: str, domain: Optional[str] = None) -> tuple[str, str]:
    """
    Work out (company_name, domain) from user input.

    'stripe.com' -> ('Stripe', 'stripe.com')
    'Acme Corp'  -> ('Acme Corp', 'acmecorp.com')
    """
    company_input = (company_input or '').strip()
    domain = (domain or '').strip().lower() or None

    if domain:
        return company_input or domain.split('.')[0].capitalize(), domain

    if '.' in company_input and ' ' not in company_input:
        derived_domain = company_input.lower()
        label = derived_domain.split('.')[0]
        return label[:1].upper() + label[1:], derived_domain

    compact = re.sub(r'\s+', '', company_input.lower())
    return company_input, f"{compact}.com"


def resolve_company(
    company_input: str,
    domain: Optional[str] = None,
    providers: Optional[list] = None,
) -> CompanyMatch:
    """
    Identify the company, preferring an enrichment provider's answer.

    Falls back to the name/domain derived from the input when no provider
    can enrich companies or none recognises it.
    """
    name, derived_domain = derive_company_identity(company_input, domain)
    providers = providers if providers is not None else get_registry()

    for provider in providers:
        if not provider.supports_company:
            continue
        match = provider.find_company(name, domain)
        if match:
            logger.info("Found company via %s: %s (%s)", provider.name, match.name, match.domain)
            if not match.domain:
                match.domain = derived_domain
            return match

    return CompanyMatch(name=name, domain=derived_domain)
