"""
Outreach manager - main orchestration module.

Coordinates:
- Resolving a company and its recruiting contacts
- Syncing contacts into the store
- Creating and sending campaigns
- Reporting
"""

import logging
from typing import Optional

from recruitreach import db
from recruitreach.analytics import get_analytics
from recruitreach.config import PIPELINE_CONFIG, validate_config
from recruitreach.contacts import sync_contacts, upsert_company
from recruitreach.dispatcher import CampaignDispatcher
from recruitreach.errors import PersistenceError
from recruitreach.providers import get_registry
from recruitreach.resolver import (
    NO_PROVIDERS,
    fill_missing_emails,
    find_all_contacts,
    find_email_with_fallback,
    resolve_company,
)
from recruitreach.sender import get_delivery

logger = logging.getLogger(__name__)

NO_PROVIDERS_MESSAGE = (
    "No email providers configured. Please add API keys for Hunter, "
    "RocketReach or Apollo."
)
NO_CONTACTS_MESSAGE = (
    "No recruiter emails found. Try adding more API keys for different "
    "email providers or check the company domain."
)
LOCKED_MESSAGE = (
    "Found {count} contacts but their emails are locked. Revealing them "
    "requires a paid plan with the provider."
)


class OutreachManager:
    """
    Main orchestrator for the outreach pipeline.

    Usage:
        manager = OutreachManager()

        # Find recruiters at a company
        result = manager.resolve_company_and_contacts("Acme", domain="acme.com")

        # Create and send a campaign
        campaign = manager.create_campaign(company_id, "Engineer", subject, body)
        summary = manager.dispatch_campaign(campaign['id'])

        # Reporting
        stats = manager.get_analytics()
    """

    def __init__(self, dry_run: bool = False, providers: Optional[list] = None, delivery=None):
        """
        Initialize the outreach manager.

        Args:
            dry_run: If True, don't actually send emails
            providers: Provider list (defaults to the configured registry)
            delivery: Delivery backend (defaults to the configured one)
        """
        self.dry_run = dry_run or PIPELINE_CONFIG.get('DRY_RUN', False)
        self._providers = providers
        self._delivery = delivery

        db.init_db()

        errors = validate_config()
        if errors:
            for error in errors:
                logger.warning("Config issue: %s", error)

    @property
    def providers(self) -> list:
        return self._providers if self._providers is not None else get_registry()

    @property
    def delivery(self):
        if self._delivery is not None:
            return self._delivery
        return get_delivery(dry_run=self.dry_run)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve_company_and_contacts(self, company_name: str, domain: Optional[str] = None) -> dict:
        """
        Resolve a company, fan out to every provider for its recruiters and
        store what was found.

        Returns:
            Dict with company, recruiters, totalFound and message, plus
            errors when some providers or writes failed. {'error': ...}
            on configuration or input problems.
        """
        if not (company_name or '').strip() and not (domain or '').strip():
            return {'error': 'Company name or domain is required'}

        providers = self.providers
        if not providers:
            return {'error': NO_PROVIDERS_MESSAGE}

        match = resolve_company(company_name, domain, providers=providers)
        try:
            company, _ = upsert_company(match)
        except PersistenceError as e:
            logger.error("Failed to save company %s: %s", match.name, e)
            return {'error': f"Failed to save company: {e}", 'entity': e.entity}

        resolution = find_all_contacts(
            company.domain or match.domain,
            company_name=company.name,
            providers=providers,
            max_workers=PIPELINE_CONFIG.get('RESOLVE_CONCURRENCY'),
        )
        if resolution.status == NO_PROVIDERS:
            return {'error': NO_PROVIDERS_MESSAGE}

        contacts = list(resolution.contacts)
        locked = resolution.unresolved
        if locked:
            logger.info("%d contacts without email, trying single lookups", len(locked))
            filled = fill_missing_emails(locked, company.domain or match.domain, providers=providers)
            seen = {c.email for c in contacts}
            for contact in filled:
                if contact.email not in seen:
                    seen.add(contact.email)
                    contacts.append(contact)
            filled_names = {c.full_name.lower() for c in filled}
            locked = [c for c in locked if c.full_name.lower() not in filled_names]

        sync = sync_contacts(company.id, contacts)

        if sync.recruiters:
            message = f"Found {len(sync.recruiters)} recruiter contacts using email providers!"
        elif locked:
            message = LOCKED_MESSAGE.format(count=len(locked))
        else:
            message = NO_CONTACTS_MESSAGE

        result = {
            'company': (db.get_company(company.id) or company).to_dict(),
            'recruiters': sync.recruiters,
            'totalFound': len(sync.recruiters),
            'message': message,
        }

        errors = [
            {'provider': name, 'error': error}
            for name, error in resolution.provider_errors.items()
        ]
        errors.extend(sync.errors)
        if errors:
            result['errors'] = errors
        return result

    def find_email(self, first_name: str, last_name: str, domain: str) -> dict:
        """Sequential fallback lookup for one person."""
        if not (first_name and last_name and domain):
            return {'error': 'First name, last name and domain are required'}
        return find_email_with_fallback(first_name, last_name, domain, providers=self.providers).to_dict()

    # ------------------------------------------------------------------
    # Campaigns
    # ------------------------------------------------------------------

    def create_campaign(
        self,
        company_id: int,
        position_title: str,
        subject: str,
        template: str,
    ) -> dict:
        """Create a draft campaign for a stored company."""
        missing = [
            name for name, value in (
                ('company_id', company_id),
                ('position_title', position_title),
                ('subject', subject),
                ('template', template),
            )
            if value is None or (isinstance(value, str) and not value.strip())
        ]
        if missing:
            return {'error': f"Missing required fields: {', '.join(missing)}"}

        if not db.get_company(company_id):
            return {'error': 'Company not found'}

        try:
            campaign = db.create_campaign(company_id, position_title.strip(), subject, template)
        except PersistenceError as e:
            logger.error("Failed to create campaign: %s", e)
            return {'error': f"Failed to create campaign: {e}", 'entity': e.entity}

        logger.info("Created campaign #%d for company #%d", campaign.id, company_id)
        return campaign.to_dict()

    def dispatch_campaign(
        self,
        campaign_id: int,
        from_email: Optional[str] = None,
        from_name: Optional[str] = None,
    ) -> dict:
        """Send a draft campaign. See CampaignDispatcher.dispatch."""
        dispatcher = CampaignDispatcher(self.delivery)
        return dispatcher.dispatch(campaign_id, from_email=from_email, from_name=from_name)

    def delete_campaign(self, campaign_id: int) -> dict:
        """Delete a campaign and its message logs."""
        if db.delete_campaign(campaign_id):
            logger.info("Deleted campaign #%d", campaign_id)
            return {'success': True, 'campaignId': campaign_id}
        return {'success': False, 'error': 'Campaign not found'}

    def list_campaigns(self) -> list:
        return [c.to_dict() for c in db.list_campaigns()]

    def get_campaign_logs(self, campaign_id: int) -> list:
        return [log.to_dict() for log in db.get_logs_for_campaign(campaign_id)]

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def get_analytics(self) -> dict:
        return get_analytics()

    def get_status(self) -> dict:
        """Configured providers, delivery backend and config problems."""
        providers = []
        for provider in self.providers:
            capabilities = []
            if provider.supports_single:
                capabilities.append('single')
            if provider.supports_bulk:
                capabilities.append('bulk')
            if provider.supports_company:
                capabilities.append('company')
            providers.append({
                'name': provider.name,
                'key': getattr(provider, 'key', provider.name),
                'capabilities': capabilities,
            })

        delivery = self.delivery
        return {
            'providers': providers,
            'delivery': getattr(delivery, 'name', None) if delivery else None,
            'dry_run': self.dry_run,
            'config_errors': validate_config(),
        }
