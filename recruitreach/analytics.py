"""Read-only metrics over campaigns, message logs, companies and recruiters."""

from typing import Optional

from recruitreach import db
from recruitreach.models import SENT_LOG_STATUSES


def delivery_rate(sent: int, delivered: int) -> float:
    """delivered / sent as a percentage; 0 when nothing was sent."""
    return (delivered / sent * 100) if sent > 0 else 0


def get_analytics(recent: int = 5) -> dict:
    """
    Aggregate campaign statistics.

    Returns:
        Dict with totalCampaigns, totalEmails, emailsSent, emailsDelivered,
        deliveryRate, recentCampaigns, companiesTargeted, recruitersFound
    """
    totals = db.get_campaign_totals()
    recent_campaigns = db.list_campaigns(limit=recent) if recent > 0 else []

    return {
        'totalCampaigns': totals['total_campaigns'],
        'totalEmails': totals['total_emails'],
        'emailsSent': totals['emails_sent'],
        'emailsDelivered': totals['emails_delivered'],
        'deliveryRate': delivery_rate(totals['emails_sent'], totals['emails_delivered']),
        'recentCampaigns': [c.to_dict() for c in recent_campaigns],
        'companiesTargeted': db.count_companies(),
        'recruitersFound': db.count_recruiters(),
    }


def get_campaign_report(campaign_id: int) -> Optional[dict]:
    """Per-status log counts for one campaign, or None if it doesn't exist."""
    campaign = db.get_campaign(campaign_id)
    if not campaign:
        return None

    counts = db.count_logs_by_status(campaign_id)
    sent = sum(counts[s] for s in SENT_LOG_STATUSES)
    return {
        'campaign': campaign.to_dict(),
        'logStatusCounts': counts,
        'emailsSent': sent,
        'emailsFailed': counts['failed'] + counts['bounced'],
        'emailsPending': counts['pending'],
        'deliveryRate': delivery_rate(campaign.emails_sent, campaign.emails_delivered),
    }
