"""Tests for sequential fallback, parallel fan-out and company identity."""

from recruitreach.providers.base import (
    BulkLookupResult,
    CompanyMatch,
    LookupResult,
    RawContact,
    EMAIL_LOCKED,
    ERROR,
    LIMIT_REACHED,
    NOT_FOUND,
)
from recruitreach.resolver import (
    ALL_EXHAUSTED,
    NO_PROVIDERS,
    derive_company_identity,
    fill_missing_emails,
    find_all_contacts,
    find_email_with_fallback,
    merge_contacts,
    resolve_company,
)


class TestSequentialFallback:

    def test_stops_at_first_provider_with_an_email(self, fake_provider):
        a = fake_provider("A", single=LookupResult(status=LIMIT_REACHED, error="API limit reached"))
        b = fake_provider("B", single=LookupResult(email="ana@acme.com", status="valid"))
        c = fake_provider("C", single=LookupResult(email="other@acme.com", status="valid"))

        result = find_email_with_fallback("Ana", "Lopez", "acme.com", providers=[a, b, c])

        assert result.email == "ana@acme.com"
        assert result.provider == "B"
        assert result.tried == ["A", "B"]
        assert result.errors == {"A": "API limit reached"}
        assert c.calls == []

    def test_errors_and_not_found_move_to_next_provider(self, fake_provider):
        a = fake_provider("A", single=LookupResult(status=ERROR, error="HTTP 500"))
        b = fake_provider("B", single=LookupResult(status=NOT_FOUND))
        c = fake_provider("C", single=LookupResult(email="ana@acme.com", status="high_confidence", confidence=93))

        result = find_email_with_fallback("Ana", "Lopez", "acme.com", providers=[a, b, c])

        assert result.provider == "C"
        assert result.confidence == 93
        assert result.tried == ["A", "B", "C"]

    def test_all_providers_exhausted(self, fake_provider):
        a = fake_provider("A", single=LookupResult(status=NOT_FOUND))
        b = fake_provider("B", single=LookupResult(status=LIMIT_REACHED, error="API limit reached"))

        result = find_email_with_fallback("Ana", "Lopez", "acme.com", providers=[a, b])

        assert result.email is None
        assert result.status == NOT_FOUND
        assert result.provider == ALL_EXHAUSTED

    def test_no_providers(self):
        result = find_email_with_fallback("Ana", "Lopez", "acme.com", providers=[])

        assert result.email is None
        assert result.status == NO_PROVIDERS
        assert result.provider == "none"

    def test_bulk_only_providers_are_skipped(self, fake_provider):
        bulk_only = fake_provider("Bulk", bulk=[])

        result = find_email_with_fallback("Ana", "Lopez", "acme.com", providers=[bulk_only])

        assert result.status == NO_PROVIDERS
        assert bulk_only.calls == []


class TestFanOut:

    def test_overlapping_results_are_deduplicated(self, fake_provider):
        a = fake_provider("A", bulk=[
            RawContact(email="x@acme.com", first_name="X"),
            RawContact(email="y@acme.com", first_name="Y"),
        ])
        b = fake_provider("B", bulk=[
            RawContact(email="y@acme.com", first_name="Yves"),
            RawContact(email="z@acme.com", first_name="Z"),
        ])

        result = find_all_contacts("acme.com", providers=[a, b])

        assert [c.email for c in result.contacts] == ["x@acme.com", "y@acme.com", "z@acme.com"]
        # first occurrence wins
        assert result.contacts[1].first_name == "Y"
        assert result.contacts[1].provider == "A"
        assert result.providers_queried == ["A", "B"]

    def test_dedup_is_case_sensitive(self, fake_provider):
        a = fake_provider("A", bulk=[RawContact(email="Ana@acme.com")])
        b = fake_provider("B", bulk=[RawContact(email="ana@acme.com")])

        result = find_all_contacts("acme.com", providers=[a, b])

        assert [c.email for c in result.contacts] == ["Ana@acme.com", "ana@acme.com"]

    def test_failed_provider_does_not_sink_the_others(self, fake_provider):
        a = fake_provider("A", bulk=BulkLookupResult(status=LIMIT_REACHED, error="API limit reached", provider="A"))
        b = fake_provider("B", bulk=[RawContact(email="z@acme.com")])

        result = find_all_contacts("acme.com", providers=[a, b])

        assert [c.email for c in result.contacts] == ["z@acme.com"]
        assert result.provider_errors == {"A": "API limit reached"}

    def test_every_provider_is_queried(self, fake_provider):
        providers = [fake_provider(name, bulk=[]) for name in ("A", "B", "C")]

        result = find_all_contacts("acme.com", company_name="Acme", providers=providers)

        assert result.contacts == []
        assert all(p.calls == [("bulk", "acme.com", "Acme")] for p in providers)

    def test_no_bulk_providers(self, fake_provider):
        single_only = fake_provider("S", single=LookupResult(status=NOT_FOUND))

        result = find_all_contacts("acme.com", providers=[single_only])

        assert result.status == NO_PROVIDERS
        assert result.contacts == []

    def test_locked_contacts_are_reported_as_unresolved(self, fake_provider):
        a = fake_provider("A", bulk=[
            RawContact(first_name="Bo", last_name="Li", status=EMAIL_LOCKED),
            RawContact(first_name="Ana", last_name="Lopez", status=EMAIL_LOCKED),
        ])
        b = fake_provider("B", bulk=[RawContact(email="ana@acme.com", first_name="Ana", last_name="Lopez")])

        result = find_all_contacts("acme.com", providers=[a, b])

        assert [c.email for c in result.contacts] == ["ana@acme.com"]
        assert [(c.first_name, c.last_name) for c in result.unresolved] == [("Bo", "Li")]
        assert result.locked_count == 1


def test_merge_contacts_with_nothing():
    assert merge_contacts([]) == ([], [])


def test_fill_missing_emails_uses_fallback(fake_provider):
    finder = fake_provider(
        "Finder",
        single=lambda first, last, domain: (
            LookupResult(email=f"{first.lower()}@{domain}", status="valid")
            if first == "Bo" else LookupResult(status=NOT_FOUND)
        ),
    )
    unresolved = [
        RawContact(first_name="Bo", last_name="Li", title="Recruiter", status=EMAIL_LOCKED),
        RawContact(first_name="Cy", last_name="Ng", status=EMAIL_LOCKED),
        RawContact(first_name="Dee", status=EMAIL_LOCKED),
    ]

    found = fill_missing_emails(unresolved, "acme.com", providers=[finder])

    assert len(found) == 1
    assert found[0].email == "bo@acme.com"
    assert found[0].title == "Recruiter"
    assert found[0].provider == "Finder"
    # Dee has no last name and is never looked up
    assert len(finder.calls) == 2


class TestCompanyIdentity:

    def test_domain_input(self):
        assert derive_company_identity("stripe.com") == ("Stripe", "stripe.com")

    def test_name_input(self):
        assert derive_company_identity("Acme Corp") == ("Acme Corp", "acmecorp.com")

    def test_explicit_domain_wins(self):
        assert derive_company_identity("Acme Corp", "ACME.io") == ("Acme Corp", "acme.io")

    def test_resolve_prefers_enrichment(self, fake_provider):
        apollo = fake_provider("Apollo", company=CompanyMatch(name="Acme Inc", domain=None, external_id="org_1"))

        match = resolve_company("Acme", providers=[apollo])

        assert match.name == "Acme Inc"
        assert match.domain == "acme.com"
        assert match.external_id == "org_1"

    def test_resolve_without_enrichment(self, fake_provider):
        hunter = fake_provider("Hunter", single=LookupResult(status=NOT_FOUND))

        match = resolve_company("stripe.com", providers=[hunter])

        assert (match.name, match.domain) == ("Stripe", "stripe.com")
        assert match.external_id is None
