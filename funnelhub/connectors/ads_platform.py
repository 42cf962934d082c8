"""
Ads platform connector
Builds the campaign -> ad set -> ad hierarchy from synced daily insight rows.

No live API call happens here; the platform sync jobs own the insight store.
"""
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from funnelhub.connectors.base import BaseConnector, StageCapabilities
from funnelhub.connectors.errors import InsightStoreError
from funnelhub.models.ad_insights import AdInsightDaily
from funnelhub.models.tenant import AdAccount
from funnelhub.schemas.hierarchy import CampaignNode, NodeLevel, StageMetrics, normalize_status
from funnelhub.utils.logger import log

PLATFORM_PROVIDERS = ("META", "GOOGLE")

# stage1=impressions, stage2=clicks, stage3=leads; stages 4-5 stay zero
PLATFORM_STAGE_METRICS = ("impressions", "clicks", "leads")


@dataclass
class _AdTotals:
    """Running sums for one ad across its daily rows."""
    ad_id: str
    name: str
    status: Optional[str] = None
    impressions: int = 0
    clicks: int = 0
    spend: float = 0.0
    leads: int = 0
    reach: int = 0
    results: int = 0

    def add(self, row: AdInsightDaily):
        self.impressions += row.impressions or 0
        self.clicks += row.clicks or 0
        self.spend += row.spend or 0.0
        self.leads += row.leads or 0
        self.reach += row.reach or 0
        self.results += row.results or 0
        # rows arrive in date order, so the last non-empty value is the latest
        if row.status:
            self.status = row.status
        if row.ad_name:
            self.name = row.ad_name


@dataclass
class _Branch:
    """Campaign or ad set being assembled; children keep first-seen order."""
    name: str
    children: Dict[str, object]


class AdsPlatformConnector(BaseConnector):
    """Connector reading synced Meta / Google Ads insights"""

    def __init__(self, db: Session, provider: str = "META"):
        provider = provider.upper()
        if provider not in PLATFORM_PROVIDERS:
            raise ValueError(f"Unsupported ads platform: {provider}")
        super().__init__(provider)
        self.db = db
        self.provider = provider
        self.STAGE_CAPABILITIES = StageCapabilities(
            provider=provider,
            tenant_configurable=False,
            metric_keys=PLATFORM_STAGE_METRICS,
        )

    def fetch_platform_hierarchy(self, account_id: str, since: date, until: date) -> List[CampaignNode]:
        """
        Campaign hierarchy for one ad account over an inclusive date range.

        Pure with respect to the store: the same range always yields the same tree.

        Raises:
            InsightStoreError: the insight store could not be read
        """
        try:
            account = (
                self.db.query(AdAccount)
                .filter(AdAccount.provider == self.provider, AdAccount.account_id == account_id)
                .first()
            )
            if account is None:
                log.info(f"No {self.provider} ad account {account_id} on record")
                return []

            rows = (
                self.db.query(AdInsightDaily)
                .filter(
                    AdInsightDaily.ad_account_id == account.id,
                    AdInsightDaily.date >= since,
                    AdInsightDaily.date <= until,
                )
                .order_by(AdInsightDaily.date, AdInsightDaily.id)
                .all()
            )
        except SQLAlchemyError as e:
            self._record_failure()
            raise InsightStoreError(self.provider, f"insight read for {account_id} failed: {e}") from e

        hierarchy = self.build_hierarchy(rows)
        self._record_success()
        log.info(
            f"{self.provider} account {account_id}: {len(rows)} rows -> {len(hierarchy)} campaigns "
            f"({since} to {until})"
        )
        return hierarchy

    def build_hierarchy(self, rows: List[AdInsightDaily]) -> List[CampaignNode]:
        """Group rows by campaign id, then ad set id, then ad id."""
        campaigns: Dict[str, _Branch] = {}

        for row in rows:
            campaign = campaigns.get(row.campaign_id)
            if campaign is None:
                campaign = campaigns[row.campaign_id] = _Branch(row.campaign_name, {})
            campaign.name = row.campaign_name or campaign.name

            adset = campaign.children.get(row.adset_id)
            if adset is None:
                adset = campaign.children[row.adset_id] = _Branch(row.adset_name, {})
            adset.name = row.adset_name or adset.name

            ad = adset.children.get(row.ad_id)
            if ad is None:
                ad = adset.children[row.ad_id] = _AdTotals(row.ad_id, row.ad_name or f"Ad {row.ad_id}")
            ad.add(row)

        prefix = self.provider.lower()
        hierarchy = []
        for campaign_id, campaign in campaigns.items():
            adsets = []
            for adset_id, adset in campaign.children.items():
                ads = [self._ad_node(ad) for ad in adset.children.values()]
                adsets.append(CampaignNode(
                    id=f"{prefix}-adset-{adset_id}",
                    name=adset.name,
                    level=NodeLevel.AD_GROUP,
                ).with_children(ads))
            hierarchy.append(CampaignNode(
                id=f"{prefix}-campaign-{campaign_id}",
                name=campaign.name,
                level=NodeLevel.CAMPAIGN,
            ).with_children(adsets))

        return hierarchy

    def _ad_node(self, ad: _AdTotals) -> CampaignNode:
        keys = self.capabilities.metric_keys
        spend = ad.spend
        if spend < 0:
            # refunds and adjustments can outweigh the spend synced for a range
            log.warning(f"{self.provider} ad {ad.ad_id} summed to negative spend {spend:.2f}; using 0")
            spend = 0.0
        return CampaignNode(
            id=f"{self.provider.lower()}-ad-{ad.ad_id}",
            name=ad.name,
            level=NodeLevel.AD,
            status=normalize_status(ad.status),
            stages=StageMetrics.from_sequence([getattr(ad, key) for key in keys]),
            spend=spend,
            platform_leads=max(0, ad.leads),
        )
