"""Hierarchy and provider payload schemas"""

from funnelhub.schemas.hierarchy import (
    CampaignNode,
    NodeLevel,
    NodeStatus,
    StageMetrics,
    STAGE_COUNT,
)
from funnelhub.schemas.sources import DataSourceType, SOURCE_PROVIDERS

__all__ = [
    "CampaignNode",
    "NodeLevel",
    "NodeStatus",
    "StageMetrics",
    "STAGE_COUNT",
    "DataSourceType",
    "SOURCE_PROVIDERS",
]
