"""
Dashboard data source selectors
"""
from enum import Enum
from typing import Dict, Tuple


class DataSourceType(str, Enum):
    CRM = "CRM"
    META = "META"
    GOOGLE = "GOOGLE"
    HYBRID_META = "HYBRID_META"
    HYBRID_GOOGLE = "HYBRID_GOOGLE"
    HYBRID_ALL = "HYBRID_ALL"

    @classmethod
    def parse(cls, value: str) -> "DataSourceType":
        """Case-insensitive lookup; raises ValueError for an unknown selector."""
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"Unknown data source: {value!r}") from None

    @property
    def providers(self) -> Tuple[str, ...]:
        return SOURCE_PROVIDERS[self]

    @property
    def is_hybrid(self) -> bool:
        return len(self.providers) > 1


# Participating providers per selector; a CRM participant is always the merge base
SOURCE_PROVIDERS: Dict[DataSourceType, Tuple[str, ...]] = {
    DataSourceType.CRM: ("CRM",),
    DataSourceType.META: ("META",),
    DataSourceType.GOOGLE: ("GOOGLE",),
    DataSourceType.HYBRID_META: ("CRM", "META"),
    DataSourceType.HYBRID_GOOGLE: ("CRM", "GOOGLE"),
    DataSourceType.HYBRID_ALL: ("CRM", "META", "GOOGLE"),
}
