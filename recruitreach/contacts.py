"""
Reconciles resolved companies and contacts with the store.

Companies are matched by external id, then by name/domain. Contacts are
upserted on (company_id, email), so resolving the same person twice
refreshes one row instead of creating a second.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from recruitreach import db
from recruitreach.config import PIPELINE_CONFIG
from recruitreach.errors import PersistenceError
from recruitreach.models import Company
from recruitreach.providers.base import CompanyMatch

logger = logging.getLogger(__name__)

_VALID = ('found', 'high_confidence', 'valid', 'verified', 'deliverable')
_RISKY = ('low_confidence', 'risky', 'guessed', 'accept_all', 'likely to engage')
_INVALID = ('invalid', 'bounced', 'undeliverable')


def map_email_status(status: Optional[str]) -> str:
    """Map a provider's status onto valid / invalid / risky / unknown."""
    s = (status or '').strip().lower()
    if s in _VALID:
        return 'valid'
    if s in _RISKY:
        return 'risky'
    if s in _INVALID:
        return 'invalid'
    return 'unknown'


@dataclass
class SyncResult:
    recruiters: list = field(default_factory=list)  # dicts annotated with email_provider / sync_state
    errors: list = field(default_factory=list)
    created: int = 0
    updated: int = 0


def upsert_company(match: CompanyMatch, location: Optional[str] = None) -> tuple[Company, bool]:
    """
    Create or refresh the company described by `match`.

    A row found by external id takes the latest name and domain. A row
    found by name/domain only has blank name or domain filled in, and is
    skipped when it is already tied to a different external record.

    Returns:
        (company, created)
    """
    existing = None
    by_external_id = False
    if match.external_id:
        existing = db.find_company_by_external_id(match.external_id)
        by_external_id = existing is not None
    if existing is None:
        existing = db.find_company_match(match.name, match.domain)
        if (existing and match.external_id and existing.apollo_company_id
                and existing.apollo_company_id != match.external_id):
            logger.info(
                "Company %s (#%d) belongs to another external record, creating %s",
                existing.name, existing.id, match.name,
            )
            existing = None

    if existing:
        updates = {
            'industry': match.industry,
            'size': match.size,
        }
        if by_external_id:
            updates.update(name=match.name, domain=match.domain)
        else:
            if not existing.name:
                updates['name'] = match.name
            if not existing.domain:
                updates['domain'] = match.domain
            if not existing.apollo_company_id:
                updates['apollo_company_id'] = match.external_id
        updates = {k: v for k, v in updates.items() if v}
        company = db.update_company(existing.id, **updates) if updates else existing
        logger.info("Using existing company: %s (#%d)", company.name, company.id)
        return company, False

    company = db.insert_company(
        name=match.name,
        domain=match.domain,
        industry=match.industry,
        size=match.size,
        location=location or PIPELINE_CONFIG.get('DEFAULT_COMPANY_LOCATION'),
        apollo_company_id=match.external_id,
    )
    logger.info("Created new company: %s (#%d)", company.name, company.id)
    return company, True


def sync_contacts(company_id: int, contacts: list) -> SyncResult:
    """
    Upsert each resolved contact for a company.

    A failure on one contact is logged and recorded in `errors`; the
    remaining contacts are still written.
    """
    result = SyncResult()

    for contact in contacts:
        if not contact.email:
            continue
        try:
            recruiter, created = db.upsert_recruiter(
                company_id,
                contact.email,
                first_name=contact.first_name,
                last_name=contact.last_name,
                title=contact.title,
                department=contact.department,
                linkedin_url=contact.linkedin_url,
                external_contact_id=contact.external_id,
                email_status=map_email_status(contact.status),
            )
        except PersistenceError as e:
            logger.error("Error saving recruiter %s: %s", contact.email, e)
            result.errors.append({'email': contact.email, 'entity': e.entity, 'error': str(e)})
            continue

        if created:
            result.created += 1
        else:
            result.updated += 1

        item = recruiter.to_dict()
        item['email_provider'] = contact.provider
        item['sync_state'] = 'new' if created else 'existing'
        result.recruiters.append(item)

    logger.info(
        "Synced %d recruiters for company #%d (%d new, %d existing, %d errors)",
        len(result.recruiters), company_id, result.created, result.updated, len(result.errors),
    )
    return result
