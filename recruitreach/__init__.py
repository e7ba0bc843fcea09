"""
Recruiter cold-outreach pipeline.

This package handles:
- Finding recruiting contacts at a company through several email
  discovery providers (sequential fallback and parallel fan-out)
- Syncing companies and contacts into a local store
- Sending personalized campaigns with per-message retry
- Campaign and delivery reporting
"""

from recruitreach.analytics import get_analytics, delivery_rate
from recruitreach.config import PIPELINE_CONFIG, validate_config
from recruitreach.db import init_db
from recruitreach.dispatcher import CampaignDispatcher
from recruitreach.manager import OutreachManager
from recruitreach.resolver import find_email_with_fallback, find_all_contacts
from recruitreach.sender import get_delivery, SendResult
from recruitreach.summary import generate_summary_text, print_status

__all__ = [
    'get_analytics',
    'delivery_rate',
    'PIPELINE_CONFIG',
    'validate_config',
    'init_db',
    'CampaignDispatcher',
    'OutreachManager',
    'find_email_with_fallback',
    'find_all_contacts',
    'get_delivery',
    'SendResult',
    'generate_summary_text',
    'print_status',
]
