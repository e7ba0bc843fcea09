"""
Email delivery backends.

Handles:
- Resend HTTP API (default)
- SMTP with STARTTLS
- Dry-run mode (log only)

A backend makes exactly one delivery attempt per call and reports the
outcome as a SendResult; retries belong to the dispatcher.
"""

import logging
import smtplib
import uuid
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid
from typing import Optional

import requests

from recruitreach.config import PIPELINE_CONFIG

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


class SendResult:
    """Result of an email send attempt."""
    def __init__(
        self,
        success: bool,
        message: str = "",
        error: Optional[str] = None,
        bounced: bool = False,
        message_id: Optional[str] = None,
    ):
        self.success = success
        self.message = message
        self.error = error
        self.bounced = bounced
        self.message_id = message_id

    def __repr__(self) -> str:
        return f"<SendResult success={self.success} error={self.error!r}>"


def format_sender(from_email: str, from_name: Optional[str] = None) -> str:
    return f"{from_name} <{from_email}>" if from_name else from_email


class ResendDelivery:
    """Delivers through the Resend API: {from, to[], subject, html} -> {id}."""

    name = "resend"

    def __init__(self, api_key: str, timeout: Optional[int] = None):
        self.api_key = api_key
        self.timeout = timeout or PIPELINE_CONFIG.get('REQUEST_TIMEOUT', 20)

    def send(self, sender: str, to: list[str], subject: str, html: str) -> SendResult:
        payload = {'from': sender, 'to': to, 'subject': subject, 'html': html}
        try:
            resp = requests.post(
                RESEND_API_URL,
                json=payload,
                headers={'Authorization': f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Resend request failed: %s", e)
            return SendResult(success=False, message="Request failed", error=str(e))

        try:
            data = resp.json()
        except ValueError:
            data = {}

        if resp.status_code >= 400 or data.get('error'):
            error = data.get('error')
            if isinstance(error, dict):
                error = error.get('message')
            error = error or data.get('message') or f"HTTP {resp.status_code}"
            return SendResult(
                success=False,
                message="Resend rejected the message",
                error=str(error),
                bounced=resp.status_code == 422,
            )

        message_id = data.get('id')
        if not message_id:
            return SendResult(success=False, message="Malformed response", error="Resend response had no id")

        logger.info("Email sent to %s (id %s)", ', '.join(to), message_id)
        return SendResult(success=True, message=f"Sent to {', '.join(to)}", message_id=message_id)


class SmtpDelivery:
    """Delivers over SMTP with STARTTLS."""

    name = "smtp"

    def __init__(self, host: str, port: int, user: str, password: str, timeout: int = 30):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.timeout = timeout

    def send(self, sender: str, to: list[str], subject: str, html: str, text: Optional[str] = None) -> SendResult:
        msg = MIMEMultipart('alternative')
        if text:
            msg.attach(MIMEText(text, 'plain', 'utf-8'))
        msg.attach(MIMEText(html, 'html', 'utf-8'))
        msg['From'] = sender
        msg['To'] = ', '.join(to)
        msg['Subject'] = subject
        message_id = make_msgid()
        msg['Message-ID'] = message_id

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.ehlo()
                server.starttls()
                server.ehlo()
                server.login(self.user, self.password)
                server.sendmail(self.user, to, msg.as_string())

            logger.info("Email sent to %s", ', '.join(to))
            return SendResult(success=True, message=f"Sent to {', '.join(to)}", message_id=message_id)

        except smtplib.SMTPRecipientsRefused as e:
            logger.error("Recipients refused: %s", e)
            return SendResult(
                success=False,
                message="Recipients refused",
                error=str(e),
                bounced=True,
            )
        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP error: %s", e)
            return SendResult(
                success=False,
                message="SMTP error",
                error=str(e),
            )


class DryRunDelivery:
    """Logs instead of sending."""

    name = "dry_run"

    def send(self, sender: str, to: list[str], subject: str, html: str) -> SendResult:
        logger.info("[DRY RUN] Would send email to %s: %s", ', '.join(to), subject)
        return SendResult(
            success=True,
            message=f"[DRY RUN] Would send to {', '.join(to)}",
            message_id=f"dry-run-{uuid.uuid4().hex[:12]}",
        )


def get_delivery(config: Optional[dict] = None, dry_run: bool = False):
    """
    Build the configured delivery backend.

    Returns None when the chosen backend has no credentials.
    """
    config = config if config is not None else PIPELINE_CONFIG

    if dry_run or config.get('DRY_RUN'):
        return DryRunDelivery()

    backend = config.get('DELIVERY_BACKEND', 'resend')
    if backend == 'resend':
        if not config.get('RESEND_API_KEY'):
            return None
        return ResendDelivery(config['RESEND_API_KEY'], timeout=config.get('REQUEST_TIMEOUT'))

    if backend == 'smtp':
        if not config.get('SMTP_USER') or not config.get('SMTP_PASSWORD'):
            return None
        return SmtpDelivery(
            config.get('SMTP_HOST', 'smtp.gmail.com'),
            config.get('SMTP_PORT', 587),
            config['SMTP_USER'],
            config['SMTP_PASSWORD'],
        )

    logger.error("Unknown DELIVERY_BACKEND %r", backend)
    return None
