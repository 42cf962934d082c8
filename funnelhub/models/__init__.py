"""Database models for FunnelHub"""

from funnelhub.models.tenant import (
    Tenant,
    IntegrationConfig,
    AdAccount
)

from funnelhub.models.ad_insights import AdInsightDaily

__all__ = [
    "Tenant",
    "IntegrationConfig",
    "AdAccount",
    "AdInsightDaily",
]
