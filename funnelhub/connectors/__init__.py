"""Provider connectors for FunnelHub"""

from funnelhub.connectors.base import BaseConnector, StageCapabilities
from funnelhub.connectors.crm_pipeline import CrmPipelineConnector
from funnelhub.connectors.ads_platform import AdsPlatformConnector

__all__ = [
    "BaseConnector",
    "StageCapabilities",
    "CrmPipelineConnector",
    "AdsPlatformConnector",
]
