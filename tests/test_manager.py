"""End-to-end tests through OutreachManager with fake providers and delivery."""

from recruitreach.manager import LOCKED_MESSAGE, NO_CONTACTS_MESSAGE, NO_PROVIDERS_MESSAGE, OutreachManager
from recruitreach.providers.base import (
    BulkLookupResult,
    CompanyMatch,
    LookupResult,
    RawContact,
    EMAIL_LOCKED,
    LIMIT_REACHED,
    NOT_FOUND,
)


def test_no_providers_is_an_error(store):
    manager = OutreachManager(providers=[])

    result = manager.resolve_company_and_contacts("Acme")

    assert result == {'error': NO_PROVIDERS_MESSAGE}
    assert store.count_companies() == 0


def test_company_name_or_domain_required(store, fake_provider):
    manager = OutreachManager(providers=[fake_provider("A", bulk=[])])

    assert 'error' in manager.resolve_company_and_contacts("  ")


def test_resolve_and_store_contacts(store, fake_provider):
    hunter = fake_provider("Hunter.io", bulk=[
        RawContact(email="ana@acme.com", first_name="Ana", last_name="Lopez", status="high_confidence"),
    ])
    rocket = fake_provider("RocketReach", bulk=[
        RawContact(email="ana@acme.com", first_name="Ana", status="valid"),
        RawContact(email="bo@acme.com", first_name="Bo", status="low_confidence"),
    ])
    manager = OutreachManager(providers=[hunter, rocket])

    result = manager.resolve_company_and_contacts("Acme Corp")

    assert result['company']['name'] == "Acme Corp"
    assert result['company']['domain'] == "acmecorp.com"
    assert result['totalFound'] == 2
    assert result['message'] == "Found 2 recruiter contacts using email providers!"
    assert [r['email'] for r in result['recruiters']] == ["ana@acme.com", "bo@acme.com"]
    assert result['recruiters'][0]['email_provider'] == "Hunter.io"
    assert [r['email_status'] for r in result['recruiters']] == ["valid", "risky"]
    assert 'errors' not in result


def test_repeat_resolution_does_not_duplicate(store, fake_provider):
    provider = fake_provider("A", bulk=[RawContact(email="ana@acme.com", status="valid")])
    manager = OutreachManager(providers=[provider])

    first = manager.resolve_company_and_contacts("acme.com")
    second = manager.resolve_company_and_contacts("acme.com")

    assert first['company']['id'] == second['company']['id']
    assert second['recruiters'][0]['sync_state'] == "existing"
    assert store.count_companies() == 1
    assert store.count_recruiters() == 1


def test_no_contacts_message(store, fake_provider):
    manager = OutreachManager(providers=[fake_provider("A", bulk=[])])

    result = manager.resolve_company_and_contacts("Acme", domain="acme.com")

    assert result['totalFound'] == 0
    assert result['recruiters'] == []
    assert result['message'] == NO_CONTACTS_MESSAGE


def test_locked_contacts_message(store, fake_provider):
    apollo = fake_provider(
        "Apollo.io",
        company=CompanyMatch(name="Acme Inc", domain="acme.com", external_id="org_1"),
        bulk=[RawContact(first_name="Bo", last_name="Li", status=EMAIL_LOCKED)],
    )

    result = OutreachManager(providers=[apollo]).resolve_company_and_contacts("Acme")

    assert result['totalFound'] == 0
    assert result['message'] == LOCKED_MESSAGE.format(count=1)
    assert "paid plan" in result['message']
    assert result['company']['apollo_company_id'] == "org_1"


def test_locked_contacts_are_filled_by_other_providers(store, fake_provider):
    apollo = fake_provider("Apollo.io", bulk=[RawContact(first_name="Bo", last_name="Li", status=EMAIL_LOCKED)])
    hunter = fake_provider("Hunter.io", single=LookupResult(email="bo.li@acme.com", status="valid"))

    result = OutreachManager(providers=[apollo, hunter]).resolve_company_and_contacts("Acme", domain="acme.com")

    assert [r['email'] for r in result['recruiters']] == ["bo.li@acme.com"]
    assert result['recruiters'][0]['email_provider'] == "Hunter.io"


def test_provider_errors_are_reported(store, fake_provider):
    broken = fake_provider("A", bulk=BulkLookupResult(status=LIMIT_REACHED, error="API limit reached", provider="A"))
    working = fake_provider("B", bulk=[RawContact(email="ana@acme.com", status="valid")])

    result = OutreachManager(providers=[broken, working]).resolve_company_and_contacts("acme.com")

    assert result['totalFound'] == 1
    assert result['errors'] == [{'provider': "A", 'error': "API limit reached"}]


def test_find_email(store, fake_provider):
    a = fake_provider("A", single=LookupResult(status=NOT_FOUND))
    b = fake_provider("B", single=LookupResult(email="ana@acme.com", status="valid"))

    result = OutreachManager(providers=[a, b]).find_email("Ana", "Lopez", "acme.com")

    assert result['email'] == "ana@acme.com"
    assert result['provider'] == "B"
    assert result['tried'] == ["A", "B"]


def test_create_campaign_validation(store, fake_provider):
    manager = OutreachManager(providers=[])

    missing = manager.create_campaign(1, "", "Subject", "Body")
    assert missing['error'].startswith("Missing required fields")

    unknown = manager.create_campaign(42, "Engineer", "Subject", "Body")
    assert unknown == {'error': 'Company not found'}


def test_campaign_lifecycle(store, fake_provider, fake_delivery):
    provider = fake_provider("A", bulk=[
        RawContact(email="ana@acme.com", first_name="Ana", status="valid"),
        RawContact(email="bo@acme.com", status="valid"),
    ])
    delivery = fake_delivery()
    manager = OutreachManager(providers=[provider], delivery=delivery)
    company = manager.resolve_company_and_contacts("Acme", domain="acme.com")['company']

    campaign = manager.create_campaign(
        company['id'], "Engineer", "Re {position_title}", "Hi {recruiter_first_name}, re {position_title} at {company_name}",
    )
    assert campaign['status'] == "draft"
    assert [c['id'] for c in manager.list_campaigns()] == [campaign['id']]

    sent = manager.dispatch_campaign(campaign['id'])
    assert sent['status'] == "completed"
    assert sent['emailsSent'] == 2

    logs = manager.get_campaign_logs(campaign['id'])
    assert {log['content'] for log in logs} == {
        "Hi Ana, re Engineer at Acme",
        "Hi there, re Engineer at Acme",
    }

    analytics = manager.get_analytics()
    assert analytics['totalCampaigns'] == 1
    assert analytics['deliveryRate'] == 100.0

    assert manager.delete_campaign(campaign['id'])['success']
    assert manager.get_campaign_logs(campaign['id']) == []
    assert manager.delete_campaign(campaign['id']) == {'success': False, 'error': 'Campaign not found'}


def test_status(store, fake_provider, fake_delivery):
    manager = OutreachManager(
        providers=[fake_provider("A", single=LookupResult(status=NOT_FOUND), bulk=[])],
        delivery=fake_delivery(),
    )

    status = manager.get_status()

    assert status['providers'] == [{'name': "A", 'key': "a", 'capabilities': ['single', 'bulk']}]
    assert status['delivery'] == "fake"
