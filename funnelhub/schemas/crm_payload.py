"""
CRM aggregation payload

Parsed shape of the aggregated-UTM endpoint. Parsing is lenient: missing or
null fields fall back to zero/empty so a partial response stays usable.
"""
import math
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _non_negative_number(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number if number > 0 else 0.0


class CrmAd(BaseModel):
    """Leaf: one utm_content value"""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    content: str = ""
    leads_count: int = Field(0, alias="leadsCount")
    total_revenue: float = Field(0.0, alias="totalRevenue")
    ghost_leads: Optional[int] = Field(None, alias="ghostLeads")
    journey: Dict[str, int] = Field(default_factory=dict)

    @field_validator("content", mode="before")
    @classmethod
    def _name(cls, v):
        return "" if v is None else str(v)

    @field_validator("leads_count", mode="before")
    @classmethod
    def _count(cls, v):
        return int(_non_negative_number(v))

    @field_validator("total_revenue", mode="before")
    @classmethod
    def _revenue(cls, v):
        return _non_negative_number(v)

    @field_validator("ghost_leads", mode="before")
    @classmethod
    def _ghost(cls, v):
        return None if v is None else int(_non_negative_number(v))

    @field_validator("journey", mode="before")
    @classmethod
    def _journey(cls, v):
        if not isinstance(v, dict):
            return {}
        return {str(k): int(_non_negative_number(n)) for k, n in v.items()}


class CrmGroup(BaseModel):
    """Middle level: one utm_medium value"""
    model_config = ConfigDict(extra="ignore")

    medium: str = ""
    ads: List[CrmAd] = Field(default_factory=list)

    @field_validator("medium", mode="before")
    @classmethod
    def _name(cls, v):
        return "" if v is None else str(v)

    @field_validator("ads", mode="before")
    @classmethod
    def _ads(cls, v):
        return [item for item in v if isinstance(item, dict)] if isinstance(v, list) else []


class CrmCampaign(BaseModel):
    """Top level: one utm_campaign value"""
    model_config = ConfigDict(extra="ignore")

    campaign: str = ""
    groups: List[CrmGroup] = Field(default_factory=list)

    @field_validator("campaign", mode="before")
    @classmethod
    def _name(cls, v):
        return "" if v is None else str(v)

    @field_validator("groups", mode="before")
    @classmethod
    def _groups(cls, v):
        return [item for item in v if isinstance(item, dict)] if isinstance(v, list) else []


class CrmAggregateResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    campaigns: List[CrmCampaign] = Field(default_factory=list)

    @field_validator("campaigns", mode="before")
    @classmethod
    def _campaigns(cls, v):
        return [item for item in v if isinstance(item, dict)] if isinstance(v, list) else []
