"""Tests for campaign reporting."""

from recruitreach.analytics import delivery_rate, get_analytics, get_campaign_report
from recruitreach.contacts import upsert_company
from recruitreach.providers.base import CompanyMatch
from recruitreach.summary import generate_summary_text


def test_delivery_rate_is_zero_when_nothing_sent():
    assert delivery_rate(0, 0) == 0


def test_delivery_rate_percentage():
    assert delivery_rate(10, 7) == 70.0
    assert delivery_rate(4, 4) == 100.0


def test_empty_store(store):
    analytics = get_analytics()

    assert analytics == {
        'totalCampaigns': 0,
        'totalEmails': 0,
        'emailsSent': 0,
        'emailsDelivered': 0,
        'deliveryRate': 0,
        'recentCampaigns': [],
        'companiesTargeted': 0,
        'recruitersFound': 0,
    }


def _seed(store, campaigns):
    company, _ = upsert_company(CompanyMatch(name="Acme", domain="acme.com"))
    store.upsert_recruiter(company.id, "ana@acme.com", email_status="valid")
    store.upsert_recruiter(company.id, "bo@acme.com", email_status="risky")
    created = []
    for i, (total, sent, delivered) in enumerate(campaigns):
        campaign = store.create_campaign(company.id, f"Role {i}", "s", "b")
        store.update_campaign(
            campaign.id,
            status='completed',
            total_emails=total,
            emails_sent=sent,
            emails_delivered=delivered,
        )
        created.append(campaign)
    return company, created


def test_totals_and_rate(store):
    _seed(store, [(6, 6, 4), (5, 4, 3)])

    analytics = get_analytics()

    assert analytics['totalCampaigns'] == 2
    assert analytics['totalEmails'] == 11
    assert analytics['emailsSent'] == 10
    assert analytics['emailsDelivered'] == 7
    assert analytics['deliveryRate'] == 70.0
    assert analytics['companiesTargeted'] == 1
    assert analytics['recruitersFound'] == 2


def test_recent_campaigns_newest_first_and_capped(store):
    _, created = _seed(store, [(1, 1, 1)] * 7)

    recent = get_analytics()['recentCampaigns']

    assert len(recent) == 5
    assert [c['id'] for c in recent] == [c.id for c in reversed(created)][:5]
    assert recent[0]['company_name'] == "Acme"


def test_campaign_report(store):
    company, _ = _seed(store, [])
    store.upsert_recruiter(company.id, "cy@acme.com", email_status="valid")
    store.upsert_recruiter(company.id, "dee@acme.com", email_status="valid")
    ana, bo, cy, dee = (
        store.get_recruiter_by_email(company.id, f"{name}@acme.com")
        for name in ("ana", "bo", "cy", "dee")
    )
    campaign = store.create_campaign(company.id, "Engineer", "s", "b")
    sent = store.create_email_log(campaign.id, ana.id, ana.email, "s", "b")
    failed = store.create_email_log(campaign.id, bo.id, bo.email, "s", "b")
    bounced = store.create_email_log(campaign.id, cy.id, cy.email, "s", "b")
    store.create_email_log(campaign.id, dee.id, dee.email, "s", "b")
    store.mark_log_sent(sent.id, "msg-1", 1)
    store.mark_log_failed(failed.id, "rejected", 3)
    store.mark_log_bounced(bounced.id, "invalid recipient", 1)

    report = get_campaign_report(campaign.id)

    assert report['emailsSent'] == 1
    assert report['emailsFailed'] == 2
    assert report['emailsPending'] == 1
    assert report['logStatusCounts']['bounced'] == 1
    assert report['logStatusCounts']['failed'] == 1


def test_campaign_report_missing(store):
    assert get_campaign_report(123) is None


def test_summary_text(store):
    _seed(store, [(10, 10, 7)])

    text = generate_summary_text()

    assert "Delivery rate: 70.0%" in text
    assert "Role 0 at Acme" in text
