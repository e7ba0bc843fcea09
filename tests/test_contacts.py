"""Tests for syncing resolved companies and contacts into the store."""

import pytest

from recruitreach.contacts import map_email_status, sync_contacts, upsert_company
from recruitreach.errors import IntegrityError
from recruitreach.providers.base import CompanyMatch, RawContact


@pytest.mark.parametrize("status,expected", [
    ("found", "valid"),
    ("high_confidence", "valid"),
    ("Verified", "valid"),
    ("low_confidence", "risky"),
    ("accept_all", "risky"),
    ("bounced", "invalid"),
    ("email_locked", "unknown"),
    (None, "unknown"),
])
def test_map_email_status(status, expected):
    assert map_email_status(status) == expected


class TestUpsertCompany:

    def test_creates_with_default_location(self, store):
        company, created = upsert_company(CompanyMatch(name="Acme", domain="acme.com"))

        assert created
        assert company.id is not None
        assert company.location == "United States"

    def test_second_resolution_reuses_the_row(self, store):
        first, _ = upsert_company(CompanyMatch(name="Acme", domain="acme.com"))
        second, created = upsert_company(CompanyMatch(name="Acme", domain="ACME.com", industry="software"))

        assert not created
        assert second.id == first.id
        assert second.industry == "software"
        assert store.count_companies() == 1

    def test_matches_on_external_id(self, store):
        first, _ = upsert_company(CompanyMatch(name="Acme", domain="acme.com", external_id="org_1"))
        second, created = upsert_company(CompanyMatch(name="Acme Incorporated", domain="acme.io", external_id="org_1"))

        assert not created
        assert second.id == first.id
        assert second.name == "Acme Incorporated"

    def test_different_external_id_gets_its_own_row(self, store):
        first, _ = upsert_company(CompanyMatch(name="Acme", domain="acme.com", external_id="org_1"))
        second, created = upsert_company(CompanyMatch(name="Acme", domain="acme.com", external_id="org_2"))

        assert created
        assert second.id != first.id
        assert store.get_company(first.id).apollo_company_id == "org_1"
        assert second.apollo_company_id == "org_2"

    def test_name_prefix_does_not_merge_companies(self, store):
        metabase, _ = upsert_company(CompanyMatch(name="Metabase", domain="metabase.com", external_id="org-metabase"))
        meta, created = upsert_company(CompanyMatch(name="Meta", domain="meta.com", external_id="org-meta"))

        assert created
        assert meta.id != metabase.id
        assert store.count_companies() == 2
        kept = store.get_company(metabase.id)
        assert kept.name == "Metabase"
        assert kept.domain == "metabase.com"
        assert kept.apollo_company_id == "org-metabase"

    def test_different_domains_without_external_ids(self, store):
        metabase, _ = upsert_company(CompanyMatch(name="Metabase", domain="metabase.com"))
        meta, created = upsert_company(CompanyMatch(name="Meta", domain="meta.com"))

        assert created
        assert meta.id != metabase.id
        assert store.get_company(metabase.id).name == "Metabase"

    def test_name_only_lookup_needs_a_word_match(self, store):
        acme, _ = upsert_company(CompanyMatch(name="Acme Inc", domain=None))
        again, created = upsert_company(CompanyMatch(name="acme", domain=None, industry="software"))
        other, other_created = upsert_company(CompanyMatch(name="Acm", domain=None))

        assert not created
        assert again.id == acme.id
        assert again.name == "Acme Inc"
        assert again.industry == "software"
        assert other_created
        assert other.id != acme.id

    def test_name_match_fills_blank_domain(self, store):
        first, _ = upsert_company(CompanyMatch(name="Acme", domain=None))
        second, created = upsert_company(CompanyMatch(name="Acme", domain="acme.com", external_id="org_1"))

        assert not created
        assert second.id == first.id
        assert second.domain == "acme.com"
        assert second.apollo_company_id == "org_1"


class TestSyncContacts:

    def _company(self):
        company, _ = upsert_company(CompanyMatch(name="Acme", domain="acme.com"))
        return company

    def test_resync_is_idempotent(self, store):
        company = self._company()
        contacts = [
            RawContact(email="ana@acme.com", first_name="Ana", last_name="Lopez", title="Recruiter",
                       status="high_confidence", provider="Hunter.io"),
            RawContact(email="bo@acme.com", first_name="Bo", status="low_confidence", provider="Hunter.io"),
        ]

        first = sync_contacts(company.id, contacts)
        second = sync_contacts(company.id, contacts)

        assert (first.created, first.updated) == (2, 0)
        assert (second.created, second.updated) == (0, 2)
        assert [r['sync_state'] for r in second.recruiters] == ["existing", "existing"]
        assert store.count_recruiters() == 2

    def test_update_keeps_known_fields_and_refreshes_status(self, store):
        company = self._company()
        sync_contacts(company.id, [
            RawContact(email="ana@acme.com", first_name="Ana", title="Recruiter", status="low_confidence"),
        ])
        result = sync_contacts(company.id, [
            RawContact(email="ana@acme.com", last_name="Lopez", status="verified", provider="Apollo.io"),
        ])

        recruiter = store.get_recruiter_by_email(company.id, "ana@acme.com")
        assert recruiter.first_name == "Ana"
        assert recruiter.last_name == "Lopez"
        assert recruiter.title == "Recruiter"
        assert recruiter.email_status == "valid"
        assert result.recruiters[0]['email_provider'] == "Apollo.io"

    def test_contacts_without_email_are_skipped(self, store):
        company = self._company()

        result = sync_contacts(company.id, [RawContact(first_name="Bo", last_name="Li")])

        assert result.recruiters == []
        assert store.count_recruiters() == 0

    def test_write_failure_is_reported_and_batch_continues(self, store):
        company = self._company()
        contacts = [
            RawContact(email="ana@acme.com", status="valid"),
            RawContact(email="bo@acme.com", status="valid"),
        ]

        # company 9999 does not exist, so the foreign key rejects every row
        result = sync_contacts(9999, contacts)

        assert result.recruiters == []
        assert len(result.errors) == 2
        assert result.errors[0]['entity'] == "recruiter"

        ok = sync_contacts(company.id, contacts)
        assert len(ok.recruiters) == 2


def test_invalid_email_status_is_rejected(store):
    company, _ = upsert_company(CompanyMatch(name="Acme", domain="acme.com"))

    with pytest.raises(IntegrityError):
        store.upsert_recruiter(company.id, "ana@acme.com", email_status="maybe")
