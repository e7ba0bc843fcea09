"""
SQLite store for companies, recruiters, campaigns and message logs.

Tables:
- companies: Target companies (unique by apollo_company_id when known)
- recruiters: Contacts per company, unique on (company_id, email)
- email_campaigns: Templated campaigns and their counters
- email_logs: One row per (campaign, recruiter), unique on the pair

Every function opens its own short-lived connection, so the store can
be used from worker threads without sharing a connection.
"""

import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Optional

from recruitreach import config
from recruitreach.errors import PersistenceError
from recruitreach.models import (
    Campaign,
    Company,
    EmailLog,
    Recruiter,
    CAMPAIGN_STATUSES,
    EMAIL_STATUSES,
    LOG_STATUSES,
    SENT_LOG_STATUSES,
    check_status,
)

DB_PATH = config.DB_PATH

_COMPANY_FIELDS = ('name', 'domain', 'industry', 'size', 'location', 'apollo_company_id')
_RECRUITER_FIELDS = (
    'first_name', 'last_name', 'title', 'department',
    'linkedin_url', 'external_contact_id', 'email_status',
)
_CAMPAIGN_FIELDS = (
    'position_title', 'email_subject', 'email_template', 'status',
    'total_emails', 'emails_sent', 'emails_delivered', 'emails_opened', 'emails_clicked',
)

_CAMPAIGN_SELECT = """
    SELECT c.*, co.name AS company_name
    FROM email_campaigns c
    LEFT JOIN companies co ON co.id = c.company_id
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _connect() -> sqlite3.Connection:
    """Connect to the store with foreign keys (and so cascades) enabled."""
    directory = os.path.dirname(DB_PATH)
    if directory:
        os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(DB_PATH, timeout=30)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def _session(entity: str):
    """Yield a connection, committing on success and closing afterwards."""
    conn = _connect()
    try:
        yield conn
        conn.commit()
    except sqlite3.Error as e:
        conn.rollback()
        raise PersistenceError(entity, str(e)) from e
    finally:
        conn.close()


def init_db() -> None:
    """Initialize all tables."""
    with _session("schema") as conn:
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS companies (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                domain TEXT,
                industry TEXT,
                size TEXT,
                location TEXT,
                apollo_company_id TEXT UNIQUE,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS recruiters (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                company_id INTEGER NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
                email TEXT NOT NULL,
                first_name TEXT,
                last_name TEXT,
                title TEXT,
                department TEXT,
                linkedin_url TEXT,
                external_contact_id TEXT,
                email_status TEXT NOT NULL DEFAULT 'unknown'
                    CHECK (email_status IN ('valid', 'invalid', 'risky', 'unknown', 'unverified')),
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                UNIQUE(company_id, email)
            );

            CREATE TABLE IF NOT EXISTS email_campaigns (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                company_id INTEGER NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
                position_title TEXT NOT NULL,
                email_subject TEXT NOT NULL,
                email_template TEXT NOT NULL,
                total_emails INTEGER NOT NULL DEFAULT 0,
                emails_sent INTEGER NOT NULL DEFAULT 0,
                emails_delivered INTEGER NOT NULL DEFAULT 0,
                emails_opened INTEGER NOT NULL DEFAULT 0,
                emails_clicked INTEGER NOT NULL DEFAULT 0,
                status TEXT NOT NULL DEFAULT 'draft'
                    CHECK (status IN ('draft', 'sending', 'completed', 'paused', 'failed')),
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS email_logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                campaign_id INTEGER NOT NULL REFERENCES email_campaigns(id) ON DELETE CASCADE,
                recruiter_id INTEGER NOT NULL REFERENCES recruiters(id) ON DELETE CASCADE,
                email TEXT NOT NULL,
                subject TEXT NOT NULL,
                content TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'pending'
                    CHECK (status IN ('pending', 'sent', 'delivered', 'opened', 'clicked', 'bounced', 'failed')),
                sent_at TEXT,
                delivered_at TEXT,
                opened_at TEXT,
                clicked_at TEXT,
                error_message TEXT,
                provider_message_id TEXT,
                attempts INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                UNIQUE(campaign_id, recruiter_id)
            );

            CREATE INDEX IF NOT EXISTS idx_recruiters_company_id ON recruiters(company_id);
            CREATE INDEX IF NOT EXISTS idx_recruiters_email ON recruiters(email);
            CREATE INDEX IF NOT EXISTS idx_email_campaigns_company_id ON email_campaigns(company_id);
            CREATE INDEX IF NOT EXISTS idx_email_logs_campaign_id ON email_logs(campaign_id);
            CREATE INDEX IF NOT EXISTS idx_email_logs_recruiter_id ON email_logs(recruiter_id);
            CREATE INDEX IF NOT EXISTS idx_email_logs_status ON email_logs(status);
        """)


# ---------------------------------------------------------------------------
# Company operations
# ---------------------------------------------------------------------------

def get_company(company_id: int) -> Optional[Company]:
    """Get a single company by ID."""
    with _session("company") as conn:
        row = conn.execute("SELECT * FROM companies WHERE id = ?", (company_id,)).fetchone()
        return Company(**dict(row)) if row else None


def find_company_by_external_id(apollo_company_id: str) -> Optional[Company]:
    if not apollo_company_id:
        return None
    with _session("company") as conn:
        row = conn.execute(
            "SELECT * FROM companies WHERE apollo_company_id = ?", (apollo_company_id,)
        ).fetchone()
        return Company(**dict(row)) if row else None


def find_company_match(name: str, domain: Optional[str] = None) -> Optional[Company]:
    """
    Find a stored company by domain or name.

    With a domain, only a row on the same domain (case-insensitive) or a
    domain-less row with the same name matches. Without one, the name must
    equal the stored name or be its leading word(s), so "Acme" finds
    "Acme Inc" but "Meta" never finds "Metabase".
    """
    name = (name or '').strip()
    with _session("company") as conn:
        if domain:
            row = conn.execute(
                """
                SELECT * FROM companies
                WHERE LOWER(domain) = LOWER(?)
                   OR (domain IS NULL AND ? != '' AND LOWER(name) = LOWER(?))
                ORDER BY CASE WHEN LOWER(domain) = LOWER(?) THEN 0 ELSE 1 END, id
                LIMIT 1
                """,
                (domain, name, name, domain),
            ).fetchone()
        elif name:
            prefix = name.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')
            row = conn.execute(
                """
                SELECT * FROM companies
                WHERE LOWER(name) = LOWER(?)
                   OR name LIKE ? || ' %' ESCAPE '\\'
                ORDER BY CASE WHEN LOWER(name) = LOWER(?) THEN 0 ELSE 1 END, id
                LIMIT 1
                """,
                (name, prefix, name),
            ).fetchone()
        else:
            row = None
        return Company(**dict(row)) if row else None


def insert_company(**fields) -> Company:
    """Create a company. Returns the stored row."""
    values = {k: fields.get(k) for k in _COMPANY_FIELDS}
    now = _now()
    with _session("company") as conn:
        cursor = conn.execute(
            f"""
            INSERT INTO companies ({', '.join(_COMPANY_FIELDS)}, created_at, updated_at)
            VALUES ({', '.join('?' for _ in _COMPANY_FIELDS)}, ?, ?)
            """,
            (*values.values(), now, now),
        )
        row = conn.execute("SELECT * FROM companies WHERE id = ?", (cursor.lastrowid,)).fetchone()
        return Company(**dict(row))


def update_company(company_id: int, **fields) -> Optional[Company]:
    """Update the given company fields. Unknown keys are ignored."""
    updates = {k: v for k, v in fields.items() if k in _COMPANY_FIELDS}
    with _session("company") as conn:
        if updates:
            assignments = ', '.join(f"{k} = ?" for k in updates)
            conn.execute(
                f"UPDATE companies SET {assignments}, updated_at = ? WHERE id = ?",
                (*updates.values(), _now(), company_id),
            )
        row = conn.execute("SELECT * FROM companies WHERE id = ?", (company_id,)).fetchone()
        return Company(**dict(row)) if row else None


def list_companies() -> list[Company]:
    with _session("company") as conn:
        rows = conn.execute("SELECT * FROM companies ORDER BY created_at DESC, id DESC").fetchall()
        return [Company(**dict(row)) for row in rows]


def count_companies() -> int:
    with _session("company") as conn:
        return conn.execute("SELECT COUNT(*) FROM companies").fetchone()[0]


# ---------------------------------------------------------------------------
# Recruiter operations
# ---------------------------------------------------------------------------

def get_recruiter_by_email(company_id: int, email: str) -> Optional[Recruiter]:
    with _session("recruiter") as conn:
        row = conn.execute(
            "SELECT * FROM recruiters WHERE company_id = ? AND email = ?",
            (company_id, email),
        ).fetchone()
        return Recruiter(**dict(row)) if row else None


def upsert_recruiter(company_id: int, email: str, **fields) -> tuple[Recruiter, bool]:
    """
    Create or update the recruiter keyed on (company_id, email).

    Non-null incoming values replace stored ones; email_status is always
    taken from the latest resolution.

    Returns:
        (recruiter, created)
    """
    email_status = check_status(fields.get('email_status') or 'unknown', EMAIL_STATUSES, 'email_status')
    values = {k: fields.get(k) for k in _RECRUITER_FIELDS}
    values['email_status'] = email_status
    now = _now()

    with _session("recruiter") as conn:
        existing = conn.execute(
            "SELECT id FROM recruiters WHERE company_id = ? AND email = ?",
            (company_id, email),
        ).fetchone()

        conn.execute(
            f"""
            INSERT INTO recruiters (company_id, email, {', '.join(_RECRUITER_FIELDS)}, created_at, updated_at)
            VALUES (?, ?, {', '.join('?' for _ in _RECRUITER_FIELDS)}, ?, ?)
            ON CONFLICT(company_id, email) DO UPDATE SET
                first_name = COALESCE(excluded.first_name, first_name),
                last_name = COALESCE(excluded.last_name, last_name),
                title = COALESCE(excluded.title, title),
                department = COALESCE(excluded.department, department),
                linkedin_url = COALESCE(excluded.linkedin_url, linkedin_url),
                external_contact_id = COALESCE(excluded.external_contact_id, external_contact_id),
                email_status = excluded.email_status,
                updated_at = excluded.updated_at
            """,
            (company_id, email, *values.values(), now, now),
        )
        row = conn.execute(
            "SELECT * FROM recruiters WHERE company_id = ? AND email = ?",
            (company_id, email),
        ).fetchone()
        return Recruiter(**dict(row)), existing is None


def list_recruiters(company_id: int, email_status: Optional[str] = None) -> list[Recruiter]:
    """Get recruiters for a company, optionally filtered by email_status."""
    with _session("recruiter") as conn:
        if email_status:
            check_status(email_status, EMAIL_STATUSES, 'email_status')
            rows = conn.execute(
                "SELECT * FROM recruiters WHERE company_id = ? AND email_status = ? ORDER BY id",
                (company_id, email_status),
            ).fetchall()
        else:
            rows = conn.execute(
                "SELECT * FROM recruiters WHERE company_id = ? ORDER BY id", (company_id,)
            ).fetchall()
        return [Recruiter(**dict(row)) for row in rows]


def get_valid_recruiters(company_id: int) -> list[Recruiter]:
    """Get the recruiters a campaign may email."""
    return list_recruiters(company_id, email_status='valid')


def count_recruiters() -> int:
    with _session("recruiter") as conn:
        return conn.execute("SELECT COUNT(*) FROM recruiters").fetchone()[0]


# ---------------------------------------------------------------------------
# Campaign operations
# ---------------------------------------------------------------------------

def create_campaign(company_id: int, position_title: str, email_subject: str, email_template: str) -> Campaign:
    """Create a new campaign in draft status."""
    now = _now()
    with _session("campaign") as conn:
        cursor = conn.execute(
            """
            INSERT INTO email_campaigns
            (company_id, position_title, email_subject, email_template, status, created_at, updated_at)
            VALUES (?, ?, ?, ?, 'draft', ?, ?)
            """,
            (company_id, position_title, email_subject, email_template, now, now),
        )
        row = conn.execute(f"{_CAMPAIGN_SELECT} WHERE c.id = ?", (cursor.lastrowid,)).fetchone()
        return Campaign(**dict(row))


def get_campaign(campaign_id: int) -> Optional[Campaign]:
    """Get a single campaign (with its company name) by ID."""
    with _session("campaign") as conn:
        row = conn.execute(f"{_CAMPAIGN_SELECT} WHERE c.id = ?", (campaign_id,)).fetchone()
        return Campaign(**dict(row)) if row else None


def list_campaigns(limit: Optional[int] = None) -> list[Campaign]:
    """Get campaigns, most recent first."""
    with _session("campaign") as conn:
        query = f"{_CAMPAIGN_SELECT} ORDER BY c.created_at DESC, c.id DESC"
        if limit is not None:
            rows = conn.execute(f"{query} LIMIT ?", (limit,)).fetchall()
        else:
            rows = conn.execute(query).fetchall()
        return [Campaign(**dict(row)) for row in rows]


def update_campaign(campaign_id: int, **fields) -> None:
    """Update campaign status and/or counters."""
    updates = {k: v for k, v in fields.items() if k in _CAMPAIGN_FIELDS}
    if 'status' in updates:
        check_status(updates['status'], CAMPAIGN_STATUSES, 'campaign status')
    if not updates:
        return

    assignments = ', '.join(f"{k} = ?" for k in updates)
    with _session("campaign") as conn:
        conn.execute(
            f"UPDATE email_campaigns SET {assignments}, updated_at = ? WHERE id = ?",
            (*updates.values(), _now(), campaign_id),
        )


def claim_campaign_for_sending(campaign_id: int, total_emails: int) -> bool:
    """
    Move a draft campaign to 'sending' in one conditional write.

    Returns False when the campaign is missing or no longer a draft, so of
    several concurrent callers exactly one gets True.
    """
    with _session("campaign") as conn:
        cursor = conn.execute(
            """
            UPDATE email_campaigns
            SET status = 'sending', total_emails = ?, updated_at = ?
            WHERE id = ? AND status = 'draft'
            """,
            (total_emails, _now(), campaign_id),
        )
        return cursor.rowcount == 1


def delete_campaign(campaign_id: int) -> bool:
    """Delete a campaign and (by cascade) its logs. Returns False if missing."""
    with _session("campaign") as conn:
        cursor = conn.execute("DELETE FROM email_campaigns WHERE id = ?", (campaign_id,))
        return cursor.rowcount > 0


def get_campaign_totals() -> dict:
    """Sum the counters over every campaign."""
    with _session("campaign") as conn:
        row = conn.execute(
            """
            SELECT
                COUNT(*) AS total_campaigns,
                COALESCE(SUM(total_emails), 0) AS total_emails,
                COALESCE(SUM(emails_sent), 0) AS emails_sent,
                COALESCE(SUM(emails_delivered), 0) AS emails_delivered
            FROM email_campaigns
            """
        ).fetchone()
        return dict(row)


# ---------------------------------------------------------------------------
# Message log operations
# ---------------------------------------------------------------------------

def create_email_log(
    campaign_id: int,
    recruiter_id: int,
    email: str,
    subject: str,
    content: str,
) -> EmailLog:
    """Create a pending log row ahead of the first send attempt."""
    now = _now()
    with _session("email_log") as conn:
        cursor = conn.execute(
            """
            INSERT INTO email_logs
            (campaign_id, recruiter_id, email, subject, content, status, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, 'pending', ?, ?)
            """,
            (campaign_id, recruiter_id, email, subject, content, now, now),
        )
        row = conn.execute("SELECT * FROM email_logs WHERE id = ?", (cursor.lastrowid,)).fetchone()
        return EmailLog(**dict(row))


def update_log_status(log_id: int, status: str, **kwargs) -> None:
    """Move a log to `status`, stamping the matching timestamp column."""
    check_status(status, LOG_STATUSES, 'log status')
    now = _now()

    updates = {'status': status}
    stamp = {
        'sent': 'sent_at',
        'delivered': 'delivered_at',
        'opened': 'opened_at',
        'clicked': 'clicked_at',
    }.get(status)
    if stamp and stamp not in kwargs:
        kwargs[stamp] = now

    for key in ('sent_at', 'delivered_at', 'opened_at', 'clicked_at',
                'error_message', 'provider_message_id', 'attempts'):
        if key in kwargs:
            updates[key] = kwargs[key]

    assignments = ', '.join(f"{k} = ?" for k in updates)
    with _session("email_log") as conn:
        conn.execute(
            f"UPDATE email_logs SET {assignments}, updated_at = ? WHERE id = ?",
            (*updates.values(), now, log_id),
        )


def mark_log_sent(log_id: int, provider_message_id: Optional[str], attempts: int) -> None:
    """
    Record an accepted send. The delivery provider's acceptance is the only
    confirmation we get, so delivered_at is stamped at the same time.
    """
    now = _now()
    update_log_status(
        log_id, 'sent',
        sent_at=now,
        delivered_at=now,
        provider_message_id=provider_message_id,
        attempts=attempts,
    )


def mark_log_failed(log_id: int, error_message: str, attempts: int) -> None:
    update_log_status(log_id, 'failed', error_message=error_message, attempts=attempts)


def mark_log_bounced(log_id: int, error_message: str, attempts: int) -> None:
    """Record a permanent rejection of the recipient by the delivery provider."""
    update_log_status(log_id, 'bounced', error_message=error_message, attempts=attempts)


def get_email_log(log_id: int) -> Optional[EmailLog]:
    with _session("email_log") as conn:
        row = conn.execute("SELECT * FROM email_logs WHERE id = ?", (log_id,)).fetchone()
        return EmailLog(**dict(row)) if row else None


def get_logs_for_campaign(campaign_id: int) -> list[EmailLog]:
    with _session("email_log") as conn:
        rows = conn.execute(
            "SELECT * FROM email_logs WHERE campaign_id = ? ORDER BY id", (campaign_id,)
        ).fetchall()
        return [EmailLog(**dict(row)) for row in rows]


def count_logs_by_status(campaign_id: int) -> dict:
    """Count a campaign's logs per status (every status present, zero if none)."""
    counts = {status: 0 for status in LOG_STATUSES}
    with _session("email_log") as conn:
        rows = conn.execute(
            "SELECT status, COUNT(*) AS count FROM email_logs WHERE campaign_id = ? GROUP BY status",
            (campaign_id,),
        ).fetchall()
        for row in rows:
            counts[row['status']] = row['count']
    return counts


def count_sent_logs(campaign_id: int) -> int:
    """Count logs in an accepted (sent or later) state."""
    counts = count_logs_by_status(campaign_id)
    return sum(counts[s] for s in SENT_LOG_STATUSES)
