"""
Base Connector Class

All hierarchy connectors inherit from this base class.
Provides the stage capability descriptor and fetch bookkeeping.
"""
from abc import ABC
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

from funnelhub.schemas.hierarchy import STAGE_COUNT


@dataclass(frozen=True)
class StageCapabilities:
    """
    How a provider fills stage1..stage5.

    tenant_configurable providers map a tenant's own journey labels onto the
    stages; fixed providers always emit metric_keys in that order and only
    let tenants rename the labels.
    """
    provider: str
    tenant_configurable: bool
    metric_keys: Tuple[str, ...] = ()

    def labels_for(self, configured: Optional[List[str]], defaults: List[str]) -> List[str]:
        """Display labels for stage1..stage5: the tenant's list when set, else the provider defaults."""
        labels = configured if configured else defaults
        return list(labels)[:STAGE_COUNT]


class BaseConnector(ABC):
    """
    Base class for provider connectors

    Implements common patterns:
    - Stage capability declaration
    - Fetch/error counters
    """

    STAGE_CAPABILITIES: StageCapabilities

    def __init__(self, name: str):
        self.name = name
        self.last_fetch: Optional[datetime] = None
        self.fetch_count = 0
        self.error_count = 0

    @property
    def capabilities(self) -> StageCapabilities:
        return self.STAGE_CAPABILITIES

    def _record_success(self):
        self.last_fetch = datetime.utcnow()
        self.fetch_count += 1

    def _record_failure(self):
        self.error_count += 1
