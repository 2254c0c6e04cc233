"""Task tree assembly over parent-pointer rows.

Rows come straight from the ``tasks`` table: every row has an ``id`` and a
nullable ``parent_id``. Nothing about the shape is persisted; the forest is
rebuilt from the full row set on every read.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
from typing import Any

Node = dict[str, Any]


def _sort_key(node: Node) -> tuple[bool, Any]:
    # incomplete first, then oldest first
    return (bool(node.get("done")), node.get("created_at") or "")


def _sort_level(nodes: list[Node]) -> None:
    stack = [nodes]
    while stack:
        level = stack.pop()
        level.sort(key=_sort_key)
        for n in level:
            if n["children"]:
                stack.append(n["children"])


def build_tree(rows: Iterable[Mapping[str, Any]]) -> list[Node]:
    """
    Build an ordered forest from flat task rows.

    A row whose parent is missing from ``rows`` (deleted, or never existed)
    becomes a root. Each level is sorted with a stable sort: tasks not done
    before done ones, ties by ascending ``created_at``.
    """
    by_id: dict[Any, Node] = {}
    for r in rows:
        by_id[r["id"]] = {**r, "children": []}

    roots: list[Node] = []
    for node in by_id.values():
        parent_id = node.get("parent_id")
        parent = by_id.get(parent_id) if parent_id is not None else None
        if parent is None or parent is node:
            roots.append(node)
        else:
            parent["children"].append(node)

    _sort_level(roots)
    return roots


def collect_subtree(pairs: Iterable[tuple[int, int | None]], root_id: int) -> list[int]:
    """
    Return ``root_id`` followed by all of its transitive descendants.

    ``pairs`` are ``(id, parent_id)`` tuples for every task. ``root_id`` is
    always included, even when no such row exists; the caller decides what
    deleting a missing id means.
    """
    children: dict[int | None, list[int]] = defaultdict(list)
    for task_id, parent_id in pairs:
        children[parent_id].append(task_id)

    out: list[int] = []
    seen: set[int] = set()
    stack = [root_id]
    while stack:
        cur = stack.pop()
        if cur in seen:
            continue
        seen.add(cur)
        out.append(cur)
        stack.extend(children.get(cur, ()))
    return out


def flatten_tree(forest: Iterable[Node], level: int = 0) -> list[tuple[Node, int]]:
    """Depth-first ``(node, level)`` pairs in display order."""
    out: list[tuple[Node, int]] = []
    for node in forest:
        out.append((node, level))
        out.extend(flatten_tree(node.get("children") or (), level + 1))
    return out


def find_root(forest: Iterable[Node], task_id: int) -> Node | None:
    """Top-level node whose subtree contains ``task_id``."""
    for root in forest:
        for node, _level in flatten_tree([root]):
            if node["id"] == task_id:
                return root
    return None
