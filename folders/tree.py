"""Folder tree synthesis, path annotation and read-only tree walks.

Flat folder records are turned into a tree hanging from a synthetic
"My Drive" root. All walks use explicit stacks so very deep hierarchies
do not hit the interpreter's recursion limit.
"""

from __future__ import annotations

import logging
from typing import Collection, Iterable, Iterator, NamedTuple

from .models import ROOT_PATH, FolderNode, FolderRecord

logger = logging.getLogger(__name__)


class VisibleRow(NamedTuple):
    """One rendered line of the folder picker."""

    node: FolderNode
    depth: int
    expanded: bool


def synthesize(records: Iterable[FolderRecord]) -> FolderNode:
    """Build the folder tree for one fetch batch and return its synthetic root.

    Records whose parent is missing from the batch, or whose parent chain
    loops back on itself, become direct children of the root. A repeated id
    yields a single node carrying the data of the last record seen.
    """
    lookup: dict[str, FolderNode] = {}
    for record in records:
        node = lookup.get(record.id)
        if node is None:
            lookup[record.id] = FolderNode.from_record(record)
        else:
            logger.debug(f"Duplicate folder id {record.id!r}, keeping latest record")
            node.name = record.name
            node.parent_id = record.parent_id

    parents = _resolve_parents(lookup)
    top_level: list[FolderNode] = []
    for node_id, node in lookup.items():
        parent_id = parents[node_id]
        if parent_id is None:
            top_level.append(node)
        else:
            lookup[parent_id].children.append(node)

    root = FolderNode.synthetic_root(top_level)
    annotate(root)
    logger.debug(f"Synthesized folder tree: {len(lookup)} folders, {len(top_level)} top-level")
    return root


def annotate(node: FolderNode, parent_path: str | None = None) -> None:
    """Assign ``path`` to ``node`` and every node below it.

    ``parent_path=None`` marks ``node`` as the tree root. The synthetic root
    always gets ``/``, whatever ``parent_path`` is passed.
    A node met again on the current descent keeps the path computed from its
    latest parent and is not descended into.
    """
    on_path: set[FolderNode] = set()
    stack: list[tuple[FolderNode, str | None, bool]] = [(node, parent_path, False)]
    while stack:
        current, base, leaving = stack.pop()
        if leaving:
            on_path.discard(current)
            continue
        current.path = ROOT_PATH if base is None or current.is_root else join_path(base, current.name)
        if current in on_path:
            logger.warning(f"Folder {current.id!r} is its own ancestor, not descending")
            continue
        on_path.add(current)
        stack.append((current, base, True))
        for child in reversed(current.children):
            stack.append((child, current.path, False))


def join_path(parent_path: str, name: str) -> str:
    if parent_path in ("", ROOT_PATH):
        return f"/{name}"
    return f"{parent_path}/{name}"


# ---------------------------------------------------------------------------
# search


def matches(node: FolderNode, query: str) -> bool:
    """Case-insensitive substring match on the folder name."""
    if not query:
        return True
    return query.casefold() in node.name.casefold()


def filter_children(nodes: Iterable[FolderNode], query: str) -> list[FolderNode]:
    """Shallow filter: keep the nodes whose own name matches ``query``."""
    return [node for node in nodes if matches(node, query)]


def filter_tree(root: FolderNode, query: str) -> FolderNode:
    """Return a filtered copy of the tree, applying the query level by level.

    The synthetic root is always kept, unlike the web picker which filtered
    the "My Drive" level as well. A non-matching folder hides its whole subtree,
    even when some descendant would match. The input tree is not modified.
    """
    projected = _copy_node(root)
    seen: set[FolderNode] = {root}
    stack = [(root, projected)]
    while stack:
        source, target = stack.pop()
        for child in filter_children(source.children, query):
            if child in seen:
                continue
            seen.add(child)
            copy = _copy_node(child)
            target.children.append(copy)
            stack.append((child, copy))
    return projected


def _copy_node(node: FolderNode) -> FolderNode:
    return FolderNode(id=node.id, name=node.name, path=node.path, parent_id=node.parent_id)


# ---------------------------------------------------------------------------
# walks


def iter_nodes(root: FolderNode) -> Iterator[FolderNode]:
    """Pre-order iteration over ``root`` and all of its descendants."""
    seen: set[FolderNode] = set()
    stack = [root]
    while stack:
        node = stack.pop()
        if node in seen:
            continue
        seen.add(node)
        yield node
        stack.extend(reversed(node.children))


def find_node(root: FolderNode, node_id: str) -> FolderNode | None:
    for node in iter_nodes(root):
        if node.id == node_id:
            return node
    return None


def iter_visible(root: FolderNode, expanded: Collection[str], query: str = "") -> Iterator[VisibleRow]:
    """Yield the rows a picker shows, in display order.

    Only nodes whose id is in ``expanded`` have their children listed, and
    each listed level is filtered with :func:`filter_children`. The root
    row is always yielded, whatever the query.
    """
    seen: set[FolderNode] = set()
    stack = [(root, 0)]
    while stack:
        node, depth = stack.pop()
        if node in seen:
            continue
        seen.add(node)
        is_expanded = node.id in expanded
        yield VisibleRow(node, depth, is_expanded)
        if is_expanded:
            for child in reversed(filter_children(node.children, query)):
                stack.append((child, depth + 1))


def insert_child(root: FolderNode, parent_id: str, record: FolderRecord) -> FolderNode:
    """Attach a newly created folder under ``parent_id`` (the root if unknown)."""
    parent = find_node(root, parent_id) or root
    node = FolderNode.from_record(record)
    parent.children.append(node)
    annotate(node, parent.path)
    return node


def _resolve_parents(lookup: dict[str, FolderNode]) -> dict[str, str | None]:
    """Map each id to the parent it attaches under, or None for top level.

    Dangling parents resolve to None. Parent chains are walked in input
    order; the first cycle member reached loses its parent edge.
    """
    parents: dict[str, str | None] = {
        node_id: node.parent_id if node.parent_id in lookup else None
        for node_id, node in lookup.items()
    }
    resolved: set[str] = set()
    for start in lookup:
        trail: list[str] = []
        on_trail: set[str] = set()
        current: str | None = start
        while current is not None and current not in resolved:
            if current in on_trail:
                logger.warning(f"Folder {current!r} is its own ancestor, promoting it to top level")
                parents[current] = None
                break
            trail.append(current)
            on_trail.add(current)
            current = parents[current]
        resolved.update(trail)
    return parents


__all__ = [
    "VisibleRow",
    "annotate",
    "filter_children",
    "filter_tree",
    "find_node",
    "insert_child",
    "iter_nodes",
    "iter_visible",
    "join_path",
    "matches",
    "synthesize",
]
