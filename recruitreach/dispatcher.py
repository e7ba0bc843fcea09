"""
Campaign dispatch.

Campaign status moves draft -> sending -> completed (or failed if the
run itself breaks). Every valid recruiter of the campaign's company gets
a personalized message; each message is retried with linear backoff and
ends as exactly one 'sent', 'bounced' or 'failed' log. A recipient the
provider rejects outright is not retried. All messages are sent
concurrently and the campaign is only finalized once every one of them
has an outcome.

A campaign whose messages all failed is still 'completed': the status
tracks the dispatch run, per-message failures live on the logs.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

from recruitreach import db
from recruitreach.config import PIPELINE_CONFIG
from recruitreach.errors import PersistenceError
from recruitreach.sender import SendResult, format_sender
from recruitreach.templates import render_html, render_message

logger = logging.getLogger(__name__)

NOT_DRAFT_ERROR = 'Campaign is not in draft status'


@dataclass
class MessageOutcome:
    log_id: int
    email: str
    sent: bool
    attempts: int
    error: Optional[str] = None
    bounced: bool = False
    entity: Optional[str] = None  # set when the store failed for this message


class CampaignDispatcher:
    """
    Sends one campaign.

    Usage:
        dispatcher = CampaignDispatcher(get_delivery())
        result = dispatcher.dispatch(campaign_id)
    """

    def __init__(
        self,
        delivery,
        max_attempts: Optional[int] = None,
        base_delay: Optional[float] = None,
        concurrency: Optional[int] = None,
        sleep=time.sleep,
    ):
        self.delivery = delivery
        self.max_attempts = max(1, max_attempts or PIPELINE_CONFIG.get('SEND_MAX_ATTEMPTS', 3))
        self.base_delay = base_delay if base_delay is not None else PIPELINE_CONFIG.get('SEND_RETRY_BASE_DELAY', 1.0)
        self.concurrency = max(1, concurrency or PIPELINE_CONFIG.get('SEND_CONCURRENCY', 8))
        self.sleep = sleep

    def dispatch(
        self,
        campaign_id: int,
        from_email: Optional[str] = None,
        from_name: Optional[str] = None,
    ) -> dict:
        """
        Send a draft campaign to every valid recruiter of its company.

        Precondition failures return {'error': ...} without touching the
        campaign. Only the caller whose draft -> sending write succeeds
        goes on to send; a concurrent caller gets the not-draft error.

        Returns:
            Summary dict with campaignId, totalEmails, emailsSent,
            emailsDelivered, emailsFailed and status
        """
        if self.delivery is None:
            return {'campaignId': campaign_id, 'error': 'Email delivery provider not configured'}

        campaign = db.get_campaign(campaign_id)
        if not campaign:
            return {'campaignId': campaign_id, 'error': 'Campaign not found'}

        if campaign.status != 'draft':
            return {'campaignId': campaign_id, 'error': NOT_DRAFT_ERROR, 'status': campaign.status}

        recruiters = db.get_valid_recruiters(campaign.company_id)
        if not recruiters:
            return {'campaignId': campaign_id, 'error': 'No valid recruiters found for this campaign', 'status': campaign.status}

        try:
            claimed = db.claim_campaign_for_sending(campaign_id, len(recruiters))
        except PersistenceError as e:
            logger.error("Could not start campaign #%d: %s", campaign_id, e)
            return {'campaignId': campaign_id, 'error': str(e), 'entity': e.entity}
        if not claimed:
            logger.warning("Campaign #%d was already picked up by another dispatch", campaign_id)
            return {'campaignId': campaign_id, 'error': NOT_DRAFT_ERROR}

        company = db.get_company(campaign.company_id)
        sender = format_sender(
            from_email or PIPELINE_CONFIG.get('SENDER_EMAIL'),
            from_name if from_name is not None else PIPELINE_CONFIG.get('SENDER_NAME'),
        )

        logger.info("Starting campaign #%d: %d recruiters to email", campaign_id, len(recruiters))

        errors = []
        try:
            jobs = []
            for recruiter in recruiters:
                subject, content = render_message(
                    campaign.email_subject,
                    campaign.email_template,
                    recruiter,
                    company,
                    campaign.position_title,
                )
                try:
                    log = db.create_email_log(campaign_id, recruiter.id, recruiter.email, subject, content)
                except PersistenceError as e:
                    logger.error("Error creating email log for %s: %s", recruiter.email, e)
                    errors.append({'email': recruiter.email, 'entity': e.entity, 'error': str(e)})
                    continue
                jobs.append((log, subject, content))

            outcomes = self._send_all(jobs, sender)
            errors.extend(
                {'email': o.email, 'entity': o.entity, 'error': o.error}
                for o in outcomes if o.entity
            )

            emails_sent = db.count_sent_logs(campaign_id)
            emails_delivered = emails_sent
            db.update_campaign(
                campaign_id,
                status='completed',
                emails_sent=emails_sent,
                emails_delivered=emails_delivered,
            )
        except PersistenceError as e:
            logger.error("Campaign #%d failed: %s", campaign_id, e)
            try:
                db.update_campaign(campaign_id, status='failed')
            except PersistenceError as inner:
                logger.error("Could not mark campaign #%d failed: %s", campaign_id, inner)
            return {
                'campaignId': campaign_id,
                'totalEmails': len(recruiters),
                'status': 'failed',
                'error': str(e),
                'errors': errors,
            }

        failed = sum(1 for o in outcomes if not o.sent)
        logger.info("Campaign #%d completed: %d sent, %d failed", campaign_id, emails_sent, failed)

        result = {
            'campaignId': campaign_id,
            'totalEmails': len(recruiters),
            'emailsSent': emails_sent,
            'emailsDelivered': emails_delivered,
            'emailsFailed': failed,
            'status': 'completed',
        }
        if errors:
            result['errors'] = errors
        return result

    def _send_all(self, jobs: list, sender: str) -> list:
        """Send every job concurrently and wait for all outcomes."""
        if not jobs:
            return []

        outcomes = []
        with ThreadPoolExecutor(max_workers=min(self.concurrency, len(jobs))) as ex:
            futures = [
                (log, ex.submit(self.send_with_retry, log, sender, subject, content))
                for log, subject, content in jobs
            ]
            for log, future in futures:
                try:
                    outcomes.append(future.result())
                except Exception as e:
                    logger.exception("Unexpected error sending to %s", log.email)
                    outcomes.append(MessageOutcome(log.id, log.email, sent=False, attempts=0, error=str(e)))
        return outcomes

    def send_with_retry(self, log, sender: str, subject: str, content: str) -> MessageOutcome:
        """
        Deliver one message, retrying with linear backoff.

        Attempt n failing waits n * base_delay before attempt n + 1.
        Only this message's worker sleeps. A bounced recipient ends the
        loop at once.
        """
        html = render_html(content)
        last_error = None

        for attempt in range(1, self.max_attempts + 1):
            logger.debug("Sending email to %s (attempt %d)", log.email, attempt)
            try:
                result = self.delivery.send(sender, [log.email], subject, html)
            except Exception as e:
                result = SendResult(success=False, message="Delivery raised", error=str(e))

            if result.success:
                return self._record_sent(log, result.message_id, attempt)

            last_error = result.error or result.message or "Unknown delivery error"

            if result.bounced:
                logger.error("Recipient %s rejected, not retrying: %s", log.email, last_error)
                db.mark_log_bounced(log.id, last_error, attempt)
                return MessageOutcome(log.id, log.email, sent=False, attempts=attempt, error=last_error, bounced=True)

            logger.warning("Attempt %d failed for %s: %s", attempt, log.email, last_error)

            if attempt < self.max_attempts:
                self.sleep(attempt * self.base_delay)

        logger.error("Giving up on %s after %d attempts: %s", log.email, self.max_attempts, last_error)
        db.mark_log_failed(log.id, last_error, self.max_attempts)
        return MessageOutcome(log.id, log.email, sent=False, attempts=self.max_attempts, error=last_error)

    def _record_sent(self, log, message_id: Optional[str], attempt: int) -> MessageOutcome:
        """Mark the log sent; if that write fails, close the log as failed instead."""
        try:
            db.mark_log_sent(log.id, message_id, attempt)
        except PersistenceError as e:
            error = f"Sent (id {message_id}) but recording the send failed: {e}"
            logger.error("Email to %s: %s", log.email, error)
            try:
                db.mark_log_failed(log.id, error, attempt)
            except PersistenceError as inner:
                logger.error("Could not close log #%d for %s: %s", log.id, log.email, inner)
            return MessageOutcome(log.id, log.email, sent=False, attempts=attempt, error=error, entity=e.entity)
        return MessageOutcome(log.id, log.email, sent=True, attempts=attempt)
