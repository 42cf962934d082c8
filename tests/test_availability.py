"""
Data source availability tests.

Guards against hybrid selectors being offered when one side is missing.
"""
from funnelhub.schemas.sources import DataSourceType
from funnelhub.services.availability import get_available_sources
from funnelhub.services.tenant_sources import clean_labels, load_tenant_sources


def test_unknown_tenant_has_no_sources(db):
    assert get_available_sources(db, "nobody") == []


def test_tenant_without_integrations_has_no_sources(db, make_tenant):
    make_tenant("acme")
    assert get_available_sources(db, "acme") == []


def test_crm_only(db, make_tenant):
    make_tenant("acme", subdomain="acme")
    assert get_available_sources(db, "acme") == [DataSourceType.CRM]


def test_inactive_crm_is_not_offered(db, make_tenant):
    make_tenant("acme", subdomain="acme", crm_active=False)
    assert get_available_sources(db, "acme") == []


def test_meta_only(db, make_tenant, make_account):
    make_tenant("acme")
    make_account("acme", "META", "act_1")
    assert get_available_sources(db, "acme") == [DataSourceType.META]


def test_crm_and_meta_offers_hybrid_meta_only(db, make_tenant, make_account):
    make_tenant("acme", subdomain="acme")
    make_account("acme", "META", "act_1")

    assert get_available_sources(db, "acme") == [
        DataSourceType.CRM,
        DataSourceType.META,
        DataSourceType.HYBRID_META,
    ]


def test_everything_connected(db, make_tenant, make_account):
    make_tenant("acme", subdomain="acme")
    make_account("acme", "META", "act_1")
    make_account("acme", "GOOGLE", "123")

    assert get_available_sources(db, "acme") == list(DataSourceType)


def test_hybrid_all_requires_every_provider(db, make_tenant, make_account):
    make_tenant("acme", subdomain="acme")
    make_account("acme", "META", "act_1")
    make_account("acme", "GOOGLE", "123", status="DISABLED")

    sources = get_available_sources(db, "acme")

    assert DataSourceType.HYBRID_ALL not in sources
    assert DataSourceType.HYBRID_GOOGLE not in sources
    assert DataSourceType.GOOGLE not in sources


def test_disabled_platform_integration_hides_accounts(db, make_tenant, make_account, make_integration):
    make_tenant("acme")
    make_account("acme", "META", "act_1")
    make_integration("acme", "META", is_active=False)

    assert get_available_sources(db, "acme") == []


def test_other_tenants_accounts_do_not_count(db, make_tenant, make_account):
    make_tenant("acme")
    make_tenant("other")
    make_account("other", "META", "act_9")

    assert get_available_sources(db, "acme") == []


def test_availability_is_deterministic(db, make_tenant, make_account):
    make_tenant("acme", subdomain="acme")
    make_account("acme", "GOOGLE", "123")

    assert get_available_sources(db, "acme") == get_available_sources(db, "acme")


# ---------------------------------------------------------------------------
# Tenant source loading
# ---------------------------------------------------------------------------

def test_load_tenant_sources_reads_everything(db, make_tenant, make_account, make_integration):
    make_tenant("acme", subdomain=" acme ", journey_map=["Created", "", None, "Sale"])
    make_account("acme", "META", "act_1")
    make_account("acme", "META", "act_2")
    make_account("acme", "META", "act_3", status="DISABLED")
    make_integration("acme", "META", journey_map=["Imp", "Clk"])

    sources = load_tenant_sources(db, "acme")

    assert sources.crm_active is True
    assert sources.crm_subdomain == "acme"
    assert sources.crm_labels == ["Created", "Sale"]
    assert sources.platform_accounts == {"META": ["act_1", "act_2"]}
    assert sources.platform_labels == {"META": ["Imp", "Clk"]}


def test_clean_labels_rejects_non_lists():
    assert clean_labels(None) == []
    assert clean_labels({"a": 1}) == []
    assert clean_labels([" Lead ", 3]) == ["Lead", "3"]
