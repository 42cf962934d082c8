"""
Campaign hierarchy schema

Every provider is normalized into the same three-level tree
(campaign -> ad group -> ad). Nodes are immutable; any change produces a new
node, and parents recompute their totals from their children.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, Optional, Sequence, Tuple

from funnelhub.utils.helpers import safe_divide

STAGE_COUNT = 5


class NodeLevel(str, Enum):
    CAMPAIGN = "campaign"
    AD_GROUP = "adset"
    AD = "ad"


class NodeStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


_STATUS_ALIASES = {
    "active": NodeStatus.ACTIVE,
    "enabled": NodeStatus.ACTIVE,
    "paused": NodeStatus.PAUSED,
    "campaign_paused": NodeStatus.PAUSED,
    "adset_paused": NodeStatus.PAUSED,
    "completed": NodeStatus.COMPLETED,
    "removed": NodeStatus.COMPLETED,
    "deleted": NodeStatus.COMPLETED,
    "archived": NodeStatus.COMPLETED,
}


def normalize_status(raw: Optional[str]) -> NodeStatus:
    """Map a provider status string onto the dashboard statuses (missing -> active)."""
    if not raw:
        return NodeStatus.ACTIVE
    return _STATUS_ALIASES.get(str(raw).strip().lower(), NodeStatus.ACTIVE)


def combine_status(statuses: Iterable[NodeStatus]) -> NodeStatus:
    """A parent is active if any child is, else paused if any child is, else completed."""
    seen = set(statuses)
    if not seen or NodeStatus.ACTIVE in seen:
        return NodeStatus.ACTIVE
    if NodeStatus.PAUSED in seen:
        return NodeStatus.PAUSED
    return NodeStatus.COMPLETED


@dataclass(frozen=True)
class StageMetrics:
    """Funnel counters stage1..stage5; meaning comes from the tenant's journey map."""
    values: Tuple[int, ...] = (0,) * STAGE_COUNT

    def __post_init__(self):
        if len(self.values) != STAGE_COUNT:
            raise ValueError(f"expected {STAGE_COUNT} stage values, got {len(self.values)}")
        if any(v < 0 for v in self.values):
            raise ValueError(f"stage values must be non-negative: {self.values}")

    @classmethod
    def from_sequence(cls, values: Sequence[Any]) -> "StageMetrics":
        """Build from up to five values; missing or negative positions are zero."""
        padded = [max(0, int(v or 0)) for v in list(values)[:STAGE_COUNT]]
        padded += [0] * (STAGE_COUNT - len(padded))
        return cls(tuple(padded))

    @classmethod
    def total(cls, metrics: Iterable["StageMetrics"]) -> "StageMetrics":
        sums = [0] * STAGE_COUNT
        for m in metrics:
            for i, v in enumerate(m.values):
                sums[i] += v
        return cls(tuple(sums))

    def __getitem__(self, index: int) -> int:
        return self.values[index]

    def __add__(self, other: "StageMetrics") -> "StageMetrics":
        return StageMetrics(tuple(a + b for a, b in zip(self.values, other.values)))

    def to_dict(self) -> Dict[str, int]:
        return {f"stage{i + 1}": v for i, v in enumerate(self.values)}


ZERO_STAGES = StageMetrics()


@dataclass(frozen=True)
class CampaignNode:
    """One campaign, ad group or ad in the merged dashboard tree."""
    id: str
    name: str
    level: NodeLevel
    status: NodeStatus = NodeStatus.ACTIVE
    stages: StageMetrics = ZERO_STAGES
    spend: float = 0.0
    revenue: float = 0.0
    platform_leads: int = 0
    ghost_leads: Optional[int] = None
    is_orphan: bool = False
    children: Tuple["CampaignNode", ...] = field(default_factory=tuple)

    def __post_init__(self):
        if self.children and self.level == NodeLevel.AD:
            raise ValueError(f"ad node {self.id} cannot have children")
        if self.spend < 0 or self.revenue < 0:
            raise ValueError(f"node {self.id} has negative spend/revenue")

    @property
    def roas(self) -> float:
        """Revenue over spend, always derived from the current values."""
        return safe_divide(self.revenue, self.spend) if self.spend > 0 else 0.0

    def with_children(self, children: Iterable["CampaignNode"]) -> "CampaignNode":
        """Return a copy owning *children*, with totals rolled up from them.

        A node without children keeps its own totals.
        """
        children = tuple(children)
        if not children:
            return replace(self, children=())

        ghost = [c.ghost_leads for c in children if c.ghost_leads is not None]
        return replace(
            self,
            children=children,
            stages=StageMetrics.total(c.stages for c in children),
            spend=sum(c.spend for c in children),
            revenue=sum(c.revenue for c in children),
            platform_leads=sum(c.platform_leads for c in children),
            ghost_leads=sum(ghost) if ghost else None,
            status=combine_status(c.status for c in children),
        )

    def as_orphan(self) -> "CampaignNode":
        """Flag this subtree as single-provider data with no funnel stages."""
        if self.children:
            orphaned = self.with_children(c.as_orphan() for c in self.children)
            return replace(orphaned, is_orphan=True)
        return replace(self, stages=ZERO_STAGES, is_orphan=True)

    def walk(self) -> Iterator["CampaignNode"]:
        """Yield this node and every descendant, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the shape consumed by the dashboard UI."""
        out: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.level.value,
            "status": self.status.value,
            "data": self.stages.to_dict(),
            "spend": round(self.spend, 2),
            "revenue": round(self.revenue, 2),
            "roas": round(self.roas, 4),
            "platformLeads": self.platform_leads,
        }
        if self.ghost_leads is not None:
            out["ghostLeads"] = self.ghost_leads
        if self.is_orphan:
            out["isOrphan"] = True
        if self.level != NodeLevel.AD:
            out["children"] = [c.to_dict() for c in self.children]
        return out
