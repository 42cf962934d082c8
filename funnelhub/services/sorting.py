"""
Hierarchy sorting helpers
"""
import re
from typing import Iterable, List, Tuple, Union

from funnelhub.schemas.hierarchy import CampaignNode

_DIGITS = re.compile(r"(\d+)")


def natural_key(name: str) -> Tuple[Union[int, str], ...]:
    """Sort key comparing digit runs numerically and text case-insensitively ("Ad 2" < "Ad 10")."""
    parts = _DIGITS.split(name or "")
    # split() with a capture group puts the digit runs at odd positions
    return tuple(int(p) if i % 2 else p.casefold() for i, p in enumerate(parts))


def sort_hierarchy(nodes: Iterable[CampaignNode]) -> List[CampaignNode]:
    """New tree with every level ordered by name."""
    ordered = sorted(nodes, key=lambda n: (natural_key(n.name), n.id))
    return [
        n.with_children(sort_hierarchy(n.children)) if n.children else n
        for n in ordered
    ]
