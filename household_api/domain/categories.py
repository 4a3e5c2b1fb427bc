"""Domain types and pure tree helpers for the service-category catalog.

The helpers work on a flat arena (``id -> CategoryNode``) fetched in one
store call, so walking a subtree never goes back to the database.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional

ROOT_PARENT_ID = 0
MAX_LEVEL = 3


class RecordStatus(str, enum.Enum):
    """Soft-delete visibility requested from the store."""

    ACTIVE = "active"
    DELETED = "deleted"
    ANY = "any"


@dataclass(frozen=True)
class CategoryNode:
    id: int
    name: str
    parent_id: int = ROOT_PARENT_ID
    level: int = 1
    sort_order: int = 0
    is_enabled: bool = True
    icon: Optional[str] = None
    description: Optional[str] = None
    is_deleted: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_top_level(self) -> bool:
        return self.parent_id == ROOT_PARENT_ID

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "parent_id": self.parent_id,
            "level": self.level,
            "sort_order": self.sort_order,
            "is_enabled": self.is_enabled,
            "icon": self.icon,
            "description": self.description,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass
class CategoryTree:
    """A node of the assembled forest; ``children`` stays empty for leaves."""

    node: CategoryNode
    children: list["CategoryTree"] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data = self.node.to_dict()
        if self.children:
            data["children"] = [child.to_dict() for child in self.children]
        return data


@dataclass
class CategoryDetail:
    """A node with its parent summary and direct children attached."""

    node: CategoryNode
    parent: Optional[CategoryNode] = None
    children: list[CategoryNode] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data = self.node.to_dict()
        if self.parent is not None:
            data["parent"] = {"id": self.parent.id, "name": self.parent.name, "level": self.parent.level}
        data["children_count"] = len(self.children)
        data["children"] = [
            {"id": child.id, "name": child.name, "is_enabled": child.is_enabled} for child in self.children
        ]
        return data


def sort_key(node: CategoryNode) -> tuple[int, int]:
    return (node.sort_order, node.id)


def index_by_id(nodes: Iterable[CategoryNode]) -> dict[int, CategoryNode]:
    return {node.id: node for node in nodes}


def children_index(nodes: Iterable[CategoryNode]) -> dict[int, list[CategoryNode]]:
    """Group nodes by parent id, each group ordered by (sort_order, id)."""
    grouped: dict[int, list[CategoryNode]] = {}
    for node in nodes:
        grouped.setdefault(node.parent_id, []).append(node)
    for group in grouped.values():
        group.sort(key=sort_key)
    return grouped


def build_forest(nodes: Iterable[CategoryNode], *, orphans_as_roots: bool = False) -> list[CategoryTree]:
    """Assemble a forest from a flat set without further store calls.

    Roots are the top-level nodes. With ``orphans_as_roots`` every node whose
    parent is missing from the set becomes a root too, which is what a slice
    of the catalog (e.g. a single level) needs.
    """
    ordered = sorted(nodes, key=sort_key)
    present = {node.id for node in ordered}
    grouped = children_index(ordered)

    def _attach(node: CategoryNode) -> CategoryTree:
        return CategoryTree(node=node, children=[_attach(child) for child in grouped.get(node.id, [])])

    if orphans_as_roots:
        return [_attach(node) for node in ordered if node.parent_id not in present]
    return [_attach(node) for node in grouped.get(ROOT_PARENT_ID, [])]


def descendant_ids(grouped: Mapping[int, list[CategoryNode]], node_id: int) -> list[int]:
    """Every transitive descendant id of ``node_id``, breadth first."""
    result: list[int] = []
    seen = {node_id}
    queue = [node_id]
    while queue:
        current = queue.pop(0)
        for child in grouped.get(current, []):
            if child.id in seen:
                continue
            seen.add(child.id)
            result.append(child.id)
            queue.append(child.id)
    return result


def max_descendant_level(arena: Mapping[int, CategoryNode], grouped: Mapping[int, list[CategoryNode]], node_id: int) -> int:
    """Deepest level found in the subtree rooted at ``node_id`` (itself included)."""
    deepest = arena[node_id].level
    for child_id in descendant_ids(grouped, node_id):
        deepest = max(deepest, arena[child_id].level)
    return deepest


@dataclass
class CategoryListing:
    categories: list[CategoryTree]
    total: int

    def to_dict(self) -> dict[str, Any]:
        return {"categories": [tree.to_dict() for tree in self.categories], "total": self.total}
