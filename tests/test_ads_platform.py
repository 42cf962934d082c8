"""
Ads platform connector tests.

Guards against:
1. Daily rows not folding into one ad per ad id
2. Stage positions drifting from impressions / clicks / leads
3. Rows outside the requested range being counted
4. Repeated reads returning different trees
"""
from datetime import date
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from funnelhub.connectors.ads_platform import AdsPlatformConnector
from funnelhub.connectors.errors import InsightStoreError
from funnelhub.schemas.hierarchy import NodeLevel, NodeStatus

JAN_1 = date(2025, 1, 1)
JAN_31 = date(2025, 1, 31)


@pytest.fixture
def meta_account(make_tenant, make_account):
    make_tenant("acme")
    return make_account("acme", provider="META", account_id="act_1")


def test_rows_fold_into_campaign_adset_ad(db, meta_account, add_insight):
    add_insight(meta_account, date(2025, 1, 2), impressions=100, clicks=10, spend=20.0, leads=2)
    add_insight(meta_account, date(2025, 1, 3), impressions=50, clicks=5, spend=10.0, leads=1)
    add_insight(meta_account, date(2025, 1, 3), ad_id="a2", ad_name="Second", impressions=30, clicks=3, spend=5.0)

    tree = AdsPlatformConnector(db, "META").fetch_platform_hierarchy("act_1", JAN_1, JAN_31)

    assert len(tree) == 1
    campaign = tree[0]
    assert campaign.id == "meta-campaign-c1"
    assert campaign.level == NodeLevel.CAMPAIGN
    assert campaign.stages.values == (180, 18, 3, 0, 0)
    assert campaign.spend == pytest.approx(35.0)
    assert campaign.platform_leads == 3
    assert campaign.revenue == 0.0
    assert campaign.roas == 0.0

    adset = campaign.children[0]
    assert adset.id == "meta-adset-s1"
    ads = {ad.id: ad for ad in adset.children}
    assert set(ads) == {"meta-ad-a1", "meta-ad-a2"}
    assert ads["meta-ad-a1"].stages.values == (150, 15, 3, 0, 0)
    assert ads["meta-ad-a1"].spend == pytest.approx(30.0)
    assert ads["meta-ad-a2"].name == "Second"


def test_date_range_is_inclusive(db, meta_account, add_insight):
    add_insight(meta_account, date(2024, 12, 31), spend=99.0)
    add_insight(meta_account, JAN_1, ad_id="a2", spend=1.0)
    add_insight(meta_account, JAN_31, ad_id="a3", spend=2.0)
    add_insight(meta_account, date(2025, 2, 1), ad_id="a4", spend=99.0)

    tree = AdsPlatformConnector(db, "META").fetch_platform_hierarchy("act_1", JAN_1, JAN_31)

    assert tree[0].spend == pytest.approx(3.0)


def test_negative_spend_adjustment_clamps_to_zero(db, meta_account, add_insight):
    add_insight(meta_account, date(2025, 1, 2), spend=50.0, leads=2)
    add_insight(meta_account, date(2025, 1, 3), spend=-60.0, leads=-3)
    add_insight(meta_account, date(2025, 1, 3), ad_id="a2", spend=7.5)

    tree = AdsPlatformConnector(db, "META").fetch_platform_hierarchy("act_1", JAN_1, JAN_31)

    ads = {ad.id: ad for ad in tree[0].children[0].children}
    assert ads["meta-ad-a1"].spend == 0.0
    assert ads["meta-ad-a1"].platform_leads == 0
    assert ads["meta-ad-a1"].stages[2] == 0
    assert tree[0].spend == pytest.approx(7.5)


def test_partial_refund_reduces_spend(db, meta_account, add_insight):
    add_insight(meta_account, date(2025, 1, 2), spend=50.0)
    add_insight(meta_account, date(2025, 1, 3), spend=-20.0)

    tree = AdsPlatformConnector(db, "META").fetch_platform_hierarchy("act_1", JAN_1, JAN_31)

    assert tree[0].spend == pytest.approx(30.0)


def test_successful_read_updates_counters(db, meta_account, add_insight):
    add_insight(meta_account, spend=1.0)
    connector = AdsPlatformConnector(db, "META")

    connector.fetch_platform_hierarchy("act_1", JAN_1, JAN_31)

    assert connector.fetch_count == 1
    assert connector.error_count == 0
    assert connector.last_fetch is not None


def test_multiple_campaigns_keep_first_seen_order(db, meta_account, add_insight):
    add_insight(meta_account, campaign_id="c9", campaign_name="Zeta", ad_id="a1")
    add_insight(meta_account, campaign_id="c2", campaign_name="Alpha", adset_id="s2", ad_id="a2")

    tree = AdsPlatformConnector(db, "META").fetch_platform_hierarchy("act_1", JAN_1, JAN_31)

    assert [c.name for c in tree] == ["Zeta", "Alpha"]


def test_missing_ad_name_gets_placeholder(db, meta_account, add_insight):
    add_insight(meta_account, ad_id="777", ad_name=None)

    tree = AdsPlatformConnector(db, "META").fetch_platform_hierarchy("act_1", JAN_1, JAN_31)

    assert tree[0].children[0].children[0].name == "Ad 777"


def test_latest_status_wins_and_rolls_up(db, meta_account, add_insight):
    add_insight(meta_account, date(2025, 1, 2), status="ACTIVE")
    add_insight(meta_account, date(2025, 1, 5), status="PAUSED")
    add_insight(meta_account, date(2025, 1, 5), ad_id="a2", status="REMOVED")

    tree = AdsPlatformConnector(db, "META").fetch_platform_hierarchy("act_1", JAN_1, JAN_31)

    ads = {ad.id: ad for ad in tree[0].children[0].children}
    assert ads["meta-ad-a1"].status == NodeStatus.PAUSED
    assert ads["meta-ad-a2"].status == NodeStatus.COMPLETED
    assert tree[0].status == NodeStatus.PAUSED


def test_google_ids_are_namespaced(db, make_tenant, make_account, add_insight):
    make_tenant("acme")
    account = make_account("acme", provider="GOOGLE", account_id="123-456")
    add_insight(account, campaign_id="c1", leads=4, impressions=10)

    tree = AdsPlatformConnector(db, "google").fetch_platform_hierarchy("123-456", JAN_1, JAN_31)

    assert tree[0].id == "google-campaign-c1"
    assert tree[0].stages[2] == 4


def test_read_is_idempotent(db, meta_account, add_insight):
    add_insight(meta_account, impressions=10, clicks=2, spend=4.5, leads=1)
    connector = AdsPlatformConnector(db, "META")

    first = connector.fetch_platform_hierarchy("act_1", JAN_1, JAN_31)
    second = connector.fetch_platform_hierarchy("act_1", JAN_1, JAN_31)

    assert first == second


def test_unknown_account_is_empty(db):
    assert AdsPlatformConnector(db, "META").fetch_platform_hierarchy("act_missing", JAN_1, JAN_31) == []


def test_unsupported_provider_rejected(db):
    with pytest.raises(ValueError):
        AdsPlatformConnector(db, "TIKTOK")


def test_store_failure_raises_insight_store_error():
    db = MagicMock()
    db.query.side_effect = OperationalError("SELECT", {}, Exception("database is locked"))
    connector = AdsPlatformConnector(db, "META")

    with pytest.raises(InsightStoreError) as exc_info:
        connector.fetch_platform_hierarchy("act_1", JAN_1, JAN_31)

    assert exc_info.value.provider == "META"
    assert connector.error_count == 1


def test_platform_stages_are_not_tenant_configurable(db):
    capabilities = AdsPlatformConnector(db, "META").capabilities
    assert capabilities.tenant_configurable is False
    assert capabilities.metric_keys == ("impressions", "clicks", "leads")
