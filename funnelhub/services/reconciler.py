"""
Name-Matching Reconciler

Matches campaign nodes from two providers by normalized name and merges the
incoming side's spend into the base side. Answers: "which ad platform
campaign paid for which CRM campaign?"

Matching per base node, in base order:
1. exact normalized-name match against every unused incoming node
2. if none, substring containment in either direction
3. every match found is merged into the base node (many-to-one)
4. matched incoming ids are consumed, so a later base node cannot reuse them
Incoming nodes never matched become orphans with zeroed funnel stages.
"""
import unicodedata
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence, Set, Tuple

from funnelhub.schemas.hierarchy import CampaignNode
from funnelhub.utils.logger import log


def normalize_name(name: Optional[str]) -> str:
    """Case-folded, accent-free name with every non-alphanumeric character removed."""
    if not name:
        return ""
    decomposed = unicodedata.normalize("NFKD", name)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return "".join(ch for ch in stripped.casefold() if ch.isalnum())


@dataclass
class ReconcileResult:
    """Outcome of reconciling one tree level."""
    merged: List[CampaignNode] = field(default_factory=list)
    orphans: List[CampaignNode] = field(default_factory=list)
    # base node id -> incoming nodes merged into it
    matches: Dict[str, List[CampaignNode]] = field(default_factory=dict)


def _find_matches(
    key: str,
    candidates: Sequence[Tuple[CampaignNode, str]],
    used_ids: Set[str],
) -> List[CampaignNode]:
    if not key:
        return []
    available = [(node, other) for node, other in candidates if node.id not in used_ids and other]

    exact = [node for node, other in available if other == key]
    if exact:
        return exact

    return [node for node, other in available if other in key or key in other]


def reconcile(
    base: Sequence[CampaignNode],
    incoming: Sequence[CampaignNode],
    used_ids: Optional[Set[str]] = None,
) -> ReconcileResult:
    """
    Reconcile one level of two hierarchies.

    Args:
        base: Nodes that keep their name, stages and revenue (CRM side)
        incoming: Nodes contributing spend and platform leads (ads side)
        used_ids: Incoming ids already consumed; updated in place so the
            caller can thread one set through several calls

    Returns:
        ReconcileResult with base nodes (enriched where matched) and
        orphaned incoming nodes
    """
    used = used_ids if used_ids is not None else set()
    candidates = [(node, normalize_name(node.name)) for node in incoming]
    result = ReconcileResult()

    for node in base:
        found = _find_matches(normalize_name(node.name), candidates, used)
        if found:
            used.update(m.id for m in found)
            node = replace(
                node,
                spend=node.spend + sum(m.spend for m in found),
                platform_leads=node.platform_leads + sum(m.platform_leads for m in found),
            )
            result.matches[node.id] = found
        result.merged.append(node)

    result.orphans = [m.as_orphan() for m in incoming if m.id not in used]

    log.debug(
        f"Reconciled {len(base)} base / {len(incoming)} incoming: "
        f"{sum(len(v) for v in result.matches.values())} matched, {len(result.orphans)} orphans"
    )
    return result


def merge_hierarchies(
    base: Sequence[CampaignNode],
    incoming: Sequence[CampaignNode],
) -> List[CampaignNode]:
    """
    Reconcile two trees level by level.

    Matched pairs have their children reconciled the same way (with a fresh
    used-id set per pair); unmatched incoming children are attached under the
    base node as orphans, and the base node's totals are rolled up again.
    Unmatched incoming top-level nodes follow the base nodes.
    """
    result = reconcile(base, incoming)

    merged: List[CampaignNode] = []
    for node in result.merged:
        matched = result.matches.get(node.id, [])
        incoming_children = [child for m in matched for child in m.children]
        if incoming_children:
            node = node.with_children(merge_hierarchies(node.children, incoming_children))
        merged.append(node)

    return merged + result.orphans
