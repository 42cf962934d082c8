"""
Hybrid Merge Service

Builds the dashboard's campaign tree for one data source selector. Answers:
"what happened in the funnel, and what did it cost?"

- CRM supplies funnel stages and revenue
- Meta / Google supply spend and platform leads
- Hybrid selectors reconcile the ad platforms into the CRM tree by name

Error policy:
- a provider that is not configured contributes an empty dataset
- in a hybrid selection a failing provider is logged and contributes nothing
- when every configured participant fails (including the single-provider
  case) the first ProviderFetchError is raised
"""
import asyncio
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Union

from sqlalchemy.orm import Session

from funnelhub.config import get_settings
from funnelhub.connectors.ads_platform import AdsPlatformConnector
from funnelhub.connectors.crm_pipeline import CrmPipelineConnector
from funnelhub.connectors.errors import ProviderFetchError
from funnelhub.schemas.hierarchy import CampaignNode
from funnelhub.schemas.sources import DataSourceType
from funnelhub.services.reconciler import merge_hierarchies
from funnelhub.services.sorting import sort_hierarchy
from funnelhub.services.tenant_sources import TenantSources, load_tenant_sources
from funnelhub.utils.helpers import DateRange, parse_date
from funnelhub.utils.logger import log

settings = get_settings()


@dataclass
class HybridResult:
    """Merged campaign tree plus the stage labels to display."""
    campaigns: List[CampaignNode] = field(default_factory=list)
    labels: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "campaigns": [c.to_dict() for c in self.campaigns],
            "labels": list(self.labels),
        }


class HybridService:
    """Service orchestrating the provider connectors for the dashboard"""

    def __init__(self, db: Session, crm_connector: Optional[CrmPipelineConnector] = None):
        self.db = db
        self.crm = crm_connector or CrmPipelineConnector()
        self.default_platform_labels = {
            "META": settings.default_labels_meta,
            "GOOGLE": settings.default_labels_google,
        }

    async def fetch_hybrid(
        self,
        tenant_id: str,
        source: Union[DataSourceType, str],
        since: Union[date, str],
        until: Union[date, str],
    ) -> HybridResult:
        """
        Campaign tree for a tenant, selector and inclusive date range.

        Raises:
            ValueError: unknown selector or an inverted date range
            ProviderFetchError: every configured participant failed
        """
        if not isinstance(source, DataSourceType):
            source = DataSourceType.parse(source)
        date_range = DateRange(parse_date(since), parse_date(until))

        tenant = load_tenant_sources(self.db, tenant_id)
        labels = self.resolve_labels(tenant, source)

        participants = [p for p in source.providers if tenant.is_available(p)]
        for provider in source.providers:
            if provider not in participants:
                log.info(f"{provider} not configured for tenant {tenant_id}; using empty dataset")

        if not participants:
            return HybridResult(campaigns=[], labels=labels)

        log.info(
            f"Fetching {source.value} for tenant {tenant_id} "
            f"({date_range.since} to {date_range.until}): {', '.join(participants)}"
        )
        datasets = await self._collect(tenant, participants, date_range)

        if source.is_hybrid:
            base = datasets.get("CRM", [])
            incoming = [
                node
                for provider in source.providers if provider != "CRM"
                for node in datasets.get(provider, [])
            ]
            campaigns = merge_hierarchies(base, incoming)
        else:
            campaigns = datasets.get(source.providers[0], [])

        campaigns = sort_hierarchy(campaigns)
        log.info(f"{source.value} for tenant {tenant_id}: {len(campaigns)} campaigns")
        return HybridResult(campaigns=campaigns, labels=labels)

    def resolve_labels(self, tenant: TenantSources, source: DataSourceType) -> List[str]:
        """The CRM journey map whenever the CRM takes part, else the platform's labels."""
        if "CRM" in source.providers:
            return self.crm.capabilities.labels_for(tenant.crm_labels, settings.default_labels_crm)

        provider = source.providers[0]
        capabilities = AdsPlatformConnector(self.db, provider).capabilities
        return capabilities.labels_for(
            tenant.platform_labels.get(provider), self.default_platform_labels[provider]
        )

    async def _collect(
        self,
        tenant: TenantSources,
        participants: Sequence[str],
        date_range: DateRange,
    ) -> Dict[str, List[CampaignNode]]:
        """Run the participating connectors concurrently and apply the error policy."""
        platforms = [p for p in participants if p != "CRM"]

        jobs = []
        if "CRM" in participants:
            jobs.append(self._fetch_crm(tenant, date_range))
        if platforms:
            # the session is not thread-safe, so every platform read shares one worker thread
            jobs.append(asyncio.to_thread(self._read_platforms, tenant, platforms, date_range))

        results = list(await asyncio.gather(*jobs, return_exceptions=True))

        outcomes: Dict[str, Any] = {}
        if "CRM" in participants:
            outcomes["CRM"] = results.pop(0)
        if platforms:
            platform_outcome = results.pop(0)
            if isinstance(platform_outcome, BaseException):
                raise platform_outcome
            outcomes.update(platform_outcome)

        datasets: Dict[str, List[CampaignNode]] = {}
        errors: List[ProviderFetchError] = []
        for provider in participants:
            outcome = outcomes[provider]
            if isinstance(outcome, ProviderFetchError):
                log.error(f"{provider} fetch failed for tenant {tenant.tenant_id}: {outcome}")
                errors.append(outcome)
                datasets[provider] = []
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                datasets[provider] = outcome

        if errors and len(errors) == len(participants):
            raise errors[0]
        if errors:
            log.warning(
                f"Tenant {tenant.tenant_id}: continuing without "
                f"{', '.join(e.provider for e in errors)}"
            )
        return datasets

    async def _fetch_crm(
        self,
        tenant: TenantSources,
        date_range: DateRange,
    ) -> List[CampaignNode]:
        if not tenant.crm_subdomain:
            return []
        # the journey map goes out as configured; an empty map asks the CRM for lead counts only
        return await self.crm.fetch_pipeline_hierarchy(tenant.crm_subdomain, tenant.crm_labels, date_range)

    def _read_platforms(
        self,
        tenant: TenantSources,
        providers: Sequence[str],
        date_range: DateRange,
    ) -> Dict[str, Union[List[CampaignNode], ProviderFetchError]]:
        """Every active account of each provider, concatenated; failures are returned per provider."""
        outcomes: Dict[str, Union[List[CampaignNode], ProviderFetchError]] = {}
        for provider in providers:
            connector = AdsPlatformConnector(self.db, provider)
            try:
                nodes: List[CampaignNode] = []
                for account_id in tenant.platform_accounts.get(provider, []):
                    nodes.extend(
                        connector.fetch_platform_hierarchy(account_id, date_range.since, date_range.until)
                    )
                outcomes[provider] = nodes
            except ProviderFetchError as e:
                outcomes[provider] = e
        return outcomes
