"""
Plain-text summaries for the CLI.

Generates:
- Overall campaign statistics
- Recent campaigns
- Provider / delivery configuration status
"""

from datetime import date
from typing import Optional

from recruitreach.analytics import get_analytics, get_campaign_report

_STATUS_ICONS = {
    'draft': '📝',
    'sending': '📤',
    'completed': '✅',
    'paused': '⏸',
    'failed': '❌',
}


def generate_summary_text(analytics: Optional[dict] = None) -> str:
    """Render aggregate analytics as plain text."""
    analytics = analytics or get_analytics()
    today_str = date.today().strftime("%d %b %Y")

    lines = [
        f"📊 OUTREACH SUMMARY - {today_str}",
        "=" * 50,
        "",
        "CAMPAIGNS",
        "-" * 30,
        f"• Campaigns: {analytics['totalCampaigns']}",
        f"• Emails queued: {analytics['totalEmails']}",
        f"• Emails sent: {analytics['emailsSent']}",
        f"• Emails delivered: {analytics['emailsDelivered']}",
        f"• Delivery rate: {analytics['deliveryRate']:.1f}%",
        "",
        "CONTACTS",
        "-" * 30,
        f"• Companies targeted: {analytics['companiesTargeted']}",
        f"• Recruiters found: {analytics['recruitersFound']}",
        "",
    ]

    recent = analytics.get('recentCampaigns') or []
    if recent:
        lines.append("RECENT CAMPAIGNS")
        lines.append("-" * 30)
        for c in recent:
            icon = _STATUS_ICONS.get(c['status'], '❓')
            company = c.get('company_name') or f"company #{c['company_id']}"
            lines.append(f"{icon} #{c['id']} {c['position_title']} at {company} ({c['status']})")
            lines.append(f"  Sent {c['emails_sent']}/{c['total_emails']}, delivered {c['emails_delivered']}")
        lines.append("")

    return "\n".join(lines)


def generate_campaign_text(campaign_id: int) -> str:
    """Render one campaign's log breakdown as plain text."""
    report = get_campaign_report(campaign_id)
    if not report:
        return f"✗ Campaign #{campaign_id} not found"

    campaign = report['campaign']
    lines = [
        f"Campaign #{campaign['id']}: {campaign['position_title']} at {campaign.get('company_name') or 'N/A'}",
        f"Status: {campaign['status']}",
        f"Delivery rate: {report['deliveryRate']:.1f}%",
        "",
        "Messages:",
    ]
    for status, count in report['logStatusCounts'].items():
        if count:
            lines.append(f"  • {status}: {count}")
    return "\n".join(lines)


def print_status(status: dict) -> None:
    """Print provider and delivery configuration."""
    print()
    print("PROVIDERS")
    print("-" * 30)
    if status['providers']:
        for provider in status['providers']:
            caps = ', '.join(provider['capabilities'])
            print(f"  ✓ {provider['name']} ({caps})")
    else:
        print("  ✗ No email providers configured")

    print()
    print("DELIVERY")
    print("-" * 30)
    print(f"  {'✓' if status['delivery'] else '✗'} {status['delivery'] or 'not configured'}")

    if status['config_errors']:
        print()
        print("CONFIG ISSUES")
        print("-" * 30)
        for error in status['config_errors']:
            print(f"  ⚠ {error}")
    print()
