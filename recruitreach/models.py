"""
Row types for the outreach store.

Each dataclass mirrors one table in db.py and can be built straight
from a sqlite3.Row via ``Model(**dict(row))``.
"""

from dataclasses import dataclass, asdict
from typing import Optional

from recruitreach.errors import IntegrityError

# Closed status sets
EMAIL_STATUSES = ('valid', 'invalid', 'risky', 'unknown', 'unverified')
CAMPAIGN_STATUSES = ('draft', 'sending', 'completed', 'paused', 'failed')
LOG_STATUSES = ('pending', 'sent', 'delivered', 'opened', 'clicked', 'bounced', 'failed')

# Log states that count as an accepted send
SENT_LOG_STATUSES = ('sent', 'delivered', 'opened', 'clicked')


def check_status(value: str, allowed: tuple, field_name: str = "status") -> str:
    """Raise IntegrityError unless value is one of allowed."""
    if value not in allowed:
        raise IntegrityError(f"Invalid {field_name} {value!r} (expected one of {', '.join(allowed)})")
    return value


@dataclass
class Company:
    id: Optional[int] = None
    name: str = ""
    domain: Optional[str] = None
    industry: Optional[str] = None
    size: Optional[str] = None
    location: Optional[str] = None
    apollo_company_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Recruiter:
    id: Optional[int] = None
    company_id: Optional[int] = None
    email: str = ""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    title: Optional[str] = None
    department: Optional[str] = None
    linkedin_url: Optional[str] = None
    external_contact_id: Optional[str] = None
    email_status: str = "unknown"
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Campaign:
    id: Optional[int] = None
    company_id: Optional[int] = None
    position_title: str = ""
    email_subject: str = ""
    email_template: str = ""
    total_emails: int = 0
    emails_sent: int = 0
    emails_delivered: int = 0
    emails_opened: int = 0
    emails_clicked: int = 0
    status: str = "draft"  # draft, sending, completed, paused, failed
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    company_name: Optional[str] = None  # joined from companies, not a column

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class EmailLog:
    id: Optional[int] = None
    campaign_id: Optional[int] = None
    recruiter_id: Optional[int] = None
    email: str = ""
    subject: str = ""
    content: str = ""
    status: str = "pending"
    sent_at: Optional[str] = None
    delivered_at: Optional[str] = None
    opened_at: Optional[str] = None
    clicked_at: Optional[str] = None
    error_message: Optional[str] = None
    provider_message_id: Optional[str] = None
    attempts: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)
