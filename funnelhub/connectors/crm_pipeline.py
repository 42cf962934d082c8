"""
CRM pipeline connector
Fetches the lead pipeline aggregated by UTM (campaign -> medium -> content)
and maps it onto the campaign hierarchy using the tenant's journey stages.
"""
import asyncio
from typing import Any, List, Optional, Sequence, Tuple

import aiohttp

from funnelhub.config import get_settings
from funnelhub.connectors.base import BaseConnector, StageCapabilities
from funnelhub.connectors.errors import CrmFetchError, CrmTransportError
from funnelhub.schemas.crm_payload import CrmAd, CrmAggregateResponse
from funnelhub.schemas.hierarchy import STAGE_COUNT, CampaignNode, NodeLevel, StageMetrics
from funnelhub.utils.helpers import DateRange
from funnelhub.utils.logger import log
from funnelhub.utils.retry import retry_async

settings = get_settings()


def is_unknown_name(name: str, sentinel: str) -> bool:
    """True for the CRM's placeholder for untracked traffic."""
    return name.strip().lower() == sentinel.strip().lower()


def map_ad_stages(ad: CrmAd, journey_stage_labels: Sequence[str]) -> StageMetrics:
    """
    Map one leaf's journey counts onto stage1..stage5.

    Labels are looked up by name, positionally; a label missing from the
    leaf counts as 0. A leaf with leads but no journey breakdown puts all of
    its leads on stage 1.
    """
    if not ad.journey and ad.leads_count > 0:
        return StageMetrics.from_sequence([ad.leads_count])
    labels = list(journey_stage_labels)[:STAGE_COUNT]
    return StageMetrics.from_sequence([ad.journey.get(label, 0) for label in labels])


def build_pipeline_hierarchy(
    payload: CrmAggregateResponse,
    journey_stage_labels: Sequence[str],
    unknown_sentinel: str = settings.crm_unknown_sentinel,
    default_group_name: str = settings.crm_default_group_name,
    default_ad_name: str = settings.crm_default_ad_name,
) -> List[CampaignNode]:
    """Normalize a parsed CRM payload into campaign nodes with rolled-up totals."""
    hierarchy: List[CampaignNode] = []

    for c_idx, camp in enumerate(payload.campaigns):
        if is_unknown_name(camp.campaign, unknown_sentinel):
            continue

        groups: List[CampaignNode] = []
        for g_idx, group in enumerate(camp.groups):
            if is_unknown_name(group.medium, unknown_sentinel):
                continue

            ads: List[CampaignNode] = []
            for a_idx, ad in enumerate(group.ads):
                if is_unknown_name(ad.content, unknown_sentinel):
                    continue
                ads.append(CampaignNode(
                    id=f"crm-ad-{c_idx}-{g_idx}-{a_idx}",
                    name=ad.content or default_ad_name,
                    level=NodeLevel.AD,
                    stages=map_ad_stages(ad, journey_stage_labels),
                    revenue=ad.total_revenue,
                    ghost_leads=ad.ghost_leads,
                ))

            group_node = CampaignNode(
                id=f"crm-adset-{c_idx}-{g_idx}",
                name=group.medium or default_group_name,
                level=NodeLevel.AD_GROUP,
            )
            groups.append(group_node.with_children(ads))

        campaign_node = CampaignNode(
            id=f"crm-campaign-{c_idx}",
            name=camp.campaign,
            level=NodeLevel.CAMPAIGN,
        )
        hierarchy.append(campaign_node.with_children(groups))

    return hierarchy


class CrmPipelineConnector(BaseConnector):
    """Connector for the CRM lead-pipeline aggregation endpoint"""

    STAGE_CAPABILITIES = StageCapabilities(provider="CRM", tenant_configurable=True)

    def __init__(
        self,
        session: Optional[Any] = None,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        max_attempts: Optional[int] = None,
        base_delay: Optional[float] = None,
    ):
        """
        Args:
            session: Optional aiohttp.ClientSession to reuse; a short-lived one
                is opened per fetch otherwise
            base_url: Aggregation endpoint (defaults to settings)
            timeout_seconds: Total timeout per request
            max_attempts: Attempts before giving up (1 initial + retries)
            base_delay: First backoff delay; doubles on each retry
        """
        super().__init__("CRM")
        self._session = session
        self.base_url = base_url or settings.crm_api_base_url
        self.timeout_seconds = timeout_seconds or settings.crm_request_timeout_seconds
        self.max_attempts = max_attempts or settings.crm_retry_max_attempts
        self.base_delay = settings.crm_retry_base_delay if base_delay is None else base_delay

    @staticmethod
    def build_params(
        subdomain: str,
        journey_stage_labels: Sequence[str],
        date_range: Optional[DateRange] = None,
    ) -> List[Tuple[str, str]]:
        """Query string with one lead_journey entry per stage label, in order."""
        params = [("subdomain", subdomain)]
        params.extend(("lead_journey", label) for label in journey_stage_labels)
        if date_range is not None:
            start, end = date_range.to_unix_bounds()
            params.append(("created_at_from", str(start)))
            params.append(("created_at_to", str(end)))
        return params

    async def fetch_pipeline_hierarchy(
        self,
        subdomain: str,
        journey_stage_labels: Sequence[str],
        date_range: Optional[DateRange] = None,
    ) -> List[CampaignNode]:
        """
        Fetch the tenant's pipeline and normalize it.

        Raises:
            CrmFetchError: the endpoint kept failing after every retry
        """
        log.info(f"Fetching CRM pipeline for {subdomain} ({len(journey_stage_labels)} stages)")
        payload = await self._fetch_payload(subdomain, journey_stage_labels, date_range)
        hierarchy = build_pipeline_hierarchy(payload, journey_stage_labels)
        self._record_success()
        log.info(f"CRM pipeline for {subdomain}: {len(hierarchy)} campaigns")
        return hierarchy

    async def _fetch_payload(
        self,
        subdomain: str,
        journey_stage_labels: Sequence[str],
        date_range: Optional[DateRange],
    ) -> CrmAggregateResponse:
        params = self.build_params(subdomain, journey_stage_labels, date_range)
        fetch = retry_async(
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            max_delay=settings.crm_retry_max_delay,
            retryable_exceptions=(CrmTransportError,),
        )(self._get_json)

        try:
            if self._session is not None:
                raw = await fetch(self._session, params)
            else:
                timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
                async with aiohttp.ClientSession(timeout=timeout) as session:
                    raw = await fetch(session, params)
        except CrmTransportError as e:
            self._record_failure()
            attempts = fetch.get_retry_stats().attempts
            raise CrmFetchError(
                f"pipeline fetch for {subdomain} failed after {attempts} attempts: {e}",
                attempts=attempts,
            ) from e

        if not isinstance(raw, dict):
            log.warning(f"CRM returned a non-object payload for {subdomain}; treating as empty")
            return CrmAggregateResponse()
        return CrmAggregateResponse.model_validate(raw)

    async def _get_json(self, session, params: List[Tuple[str, str]]) -> Any:
        """Single GET; every failure surfaces as CrmTransportError."""
        try:
            async with session.get(
                self.base_url,
                params=params,
                headers={"Accept": "application/json"},
            ) as response:
                if not 200 <= response.status < 300:
                    reason = getattr(response, "reason", "") or ""
                    raise CrmTransportError(
                        f"HTTP {response.status} {reason}".strip(), status=response.status
                    )
                return await response.json(content_type=None)
        except CrmTransportError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise CrmTransportError(f"{type(e).__name__}: {e}") from e
