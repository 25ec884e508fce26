"""
Reference Matcher
=================
Locates nodes by id or by (type, componentId) query.

All lookups walk the forest in pre-order and recurse into matched nodes too,
so a node and one of its descendants can both be returned. No match is an
empty list, never an error.
"""

from typing import Iterable, List, Optional, Tuple

from .models import NodeType, RenderableNode, iter_nodes


def match(forest: List[RenderableNode], ids: Iterable[str]) -> List[RenderableNode]:
    """Return every node whose id is in ``ids``, in traversal order."""
    wanted = set(ids)
    return [node for node in iter_nodes(forest) if node.id in wanted]


def match_by_query(
    forest: List[RenderableNode],
    type: Optional[NodeType] = None,
    component_id: Optional[str] = None,
) -> List[RenderableNode]:
    """
    Return nodes matching ``type`` and/or ``component_id``.

    When both predicates are given both must hold. A query with neither
    predicate matches nothing.
    """
    if type is None and component_id is None:
        return []

    matches = []
    for node in iter_nodes(forest):
        if type is not None and node.type != type:
            continue
        if component_id is not None and node.component_id != component_id:
            continue
        matches.append(node)
    return matches


def replace_first(
    forest: List[RenderableNode],
    node_id: str,
    replacement: RenderableNode,
) -> List[RenderableNode]:
    """
    Swap the first node (pre-order) with id ``node_id`` for ``replacement``.

    Only the nodes on the path from the root to the match are rebuilt; every
    other subtree is shared with the input. Returns ``forest`` itself when
    nothing matches.
    """
    updated, found = _replace_first(forest, node_id, replacement)
    return updated if found else forest


def _replace_first(
    forest: List[RenderableNode],
    node_id: str,
    replacement: RenderableNode,
) -> Tuple[List[RenderableNode], bool]:
    for index, node in enumerate(forest):
        if node.id == node_id:
            return forest[:index] + [replacement] + forest[index + 1:], True

        children, found = _replace_first(node.children_data, node_id, replacement)
        if found:
            rebuilt = node.with_children(children)
            return forest[:index] + [rebuilt] + forest[index + 1:], True

    return forest, False
