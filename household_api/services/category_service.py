"""
Service-category catalog use cases.

The catalog is a forest at most three levels deep. Every rule that spans more
than one row (level recomputation, cascading disable, batch delete) is checked
and applied inside a single repository transaction, so a failure leaves no
partial writes behind.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional

from household_api.core.errors import ConflictError, InvalidInputError, NotFoundError
from household_api.domain.categories import (
    MAX_LEVEL,
    ROOT_PARENT_ID,
    CategoryDetail,
    CategoryListing,
    CategoryNode,
    RecordStatus,
    build_forest,
    children_index,
    descendant_ids,
    index_by_id,
    max_descendant_level,
)
from household_api.repositories.category_repository import CategoryRepository
from household_api.schemas import parse_payload
from household_api.schemas.category import CategoryCreate, CategoryListFilter, CategoryUpdate

logger = logging.getLogger(__name__)

MSG_NOT_FOUND = "Category does not exist"
MSG_PARENT_NOT_FOUND = "Parent category does not exist"
MSG_NAME_TAKEN = "Category name already exists"
MSG_DEPTH = "Category levels cannot exceed 3"
MSG_PARENT_DISABLED = "Parent category is disabled"
MSG_HAS_CHILDREN = "Category has subcategories and cannot be deleted"
MSG_ENABLED_CHILDREN = "Category has enabled subcategories and cannot be disabled"


class CategoryService:
    """Maintains the service-category forest and its integrity rules."""

    def __init__(self, repository: Optional[CategoryRepository] = None) -> None:
        self.repository = repository or CategoryRepository()

    # -------------------------------------- helpers --------------------------------------
    def _require(self, repo: CategoryRepository, category_id: int, status: RecordStatus = RecordStatus.ACTIVE) -> CategoryNode:
        node = repo.get(category_id, status)
        if node is None:
            raise NotFoundError(MSG_NOT_FOUND)
        return node

    def _detail(self, repo: CategoryRepository, node: CategoryNode) -> CategoryDetail:
        parent = repo.get(node.parent_id) if not node.is_top_level else None
        children = repo.find(parent_id=node.id)
        return CategoryDetail(node=node, parent=parent, children=children)

    def _check_new_parent(self, parent: Optional[CategoryNode]) -> CategoryNode:
        if parent is None:
            raise NotFoundError(MSG_PARENT_NOT_FOUND, {"parent_id": [MSG_PARENT_NOT_FOUND]})
        if parent.level >= MAX_LEVEL:
            raise ConflictError(MSG_DEPTH, {"parent_id": [MSG_DEPTH]})
        if not parent.is_enabled:
            raise ConflictError(MSG_PARENT_DISABLED, {"parent_id": [MSG_PARENT_DISABLED]})
        return parent

    def _check_name(self, repo: CategoryRepository, name: str, exclude_id: Optional[int] = None) -> None:
        if repo.name_taken(name, exclude_id=exclude_id):
            raise ConflictError(MSG_NAME_TAKEN, {"name": [MSG_NAME_TAKEN]})

    def _relocated_level(
        self,
        node: CategoryNode,
        new_parent_id: int,
        arena: Mapping[int, CategoryNode],
        grouped: Mapping[int, list[CategoryNode]],
    ) -> int:
        """Level the node takes under ``new_parent_id`` once every move rule passes."""
        if new_parent_id == ROOT_PARENT_ID:
            new_level = 1
        else:
            if new_parent_id == node.id:
                raise ConflictError("A category cannot be its own parent", {"parent_id": ["A category cannot be its own parent"]})
            if new_parent_id in set(descendant_ids(grouped, node.id)):
                message = "A subcategory cannot become the parent of its ancestor"
                raise ConflictError(message, {"parent_id": [message]})
            parent = self._check_new_parent(arena.get(new_parent_id))
            new_level = parent.level + 1
        if grouped.get(node.id):
            deepest = max_descendant_level(arena, grouped, node.id)
            if new_level + (deepest - node.level) > MAX_LEVEL:
                message = "Moving this category would push its subcategories past 3 levels"
                raise ConflictError(message, {"parent_id": [message]})
        return new_level

    # -------------------------------------- queries --------------------------------------
    def list_categories(self, filters: CategoryListFilter | Mapping[str, Any] | None = None) -> CategoryListing:
        criteria = parse_payload(CategoryListFilter, filters or {})
        nodes = self.repository.find(
            enabled=None if criteria.include_disabled else True,
            parent_id=ROOT_PARENT_ID if criteria.only_top_level else None,
            level=criteria.level,
        )
        forest = build_forest(nodes, orphans_as_roots=criteria.level is not None)
        return CategoryListing(categories=forest, total=len(nodes))

    def get_category(self, category_id: int) -> CategoryDetail:
        return self._detail(self.repository, self._require(self.repository, category_id))

    # -------------------------------------- mutations --------------------------------------
    def create_category(self, data: CategoryCreate | Mapping[str, Any]) -> CategoryDetail:
        payload = parse_payload(CategoryCreate, data)
        with self.repository.transaction() as repo:
            self._check_name(repo, payload.name)
            level = 1
            if payload.parent_id != ROOT_PARENT_ID:
                parent = self._check_new_parent(repo.get(payload.parent_id))
                level = parent.level + 1
            node = repo.insert(
                name=payload.name,
                parent_id=payload.parent_id,
                level=level,
                sort_order=payload.sort_order,
                is_enabled=payload.is_enabled,
                icon=payload.icon,
                description=payload.description,
            )
            detail = self._detail(repo, node)
        logger.info("Created category %s (%r) at level %s", node.id, node.name, node.level)
        return detail

    def update_category(self, category_id: int, data: CategoryUpdate | Mapping[str, Any]) -> CategoryDetail:
        payload = parse_payload(CategoryUpdate, data)
        changes = payload.changes()
        with self.repository.transaction() as repo:
            node = self._require(repo, category_id)
            if "name" in changes:
                self._check_name(repo, changes["name"], exclude_id=node.id)

            moving = "parent_id" in changes and changes["parent_id"] != node.parent_id
            disabling = changes.get("is_enabled") is False
            if not moving:
                changes.pop("parent_id", None)
            subtree: list[int] = []
            level_delta = 0
            if moving or disabling:
                arena = index_by_id(repo.find())
                grouped = children_index(arena.values())
                if disabling and any(child.is_enabled for child in grouped.get(node.id, [])):
                    raise ConflictError(MSG_ENABLED_CHILDREN, {"is_enabled": [MSG_ENABLED_CHILDREN]})
                if moving:
                    new_level = self._relocated_level(node, changes["parent_id"], arena, grouped)
                    changes["level"] = new_level
                    level_delta = new_level - node.level
                    subtree = descendant_ids(grouped, node.id)

            if changes:
                repo.update(node.id, **changes)
            if level_delta:
                repo.shift_levels(subtree, level_delta)
            detail = self._detail(repo, self._require(repo, node.id))
        if level_delta:
            logger.info("Moved category %s under %s; shifted %d descendants by %+d", node.id, changes["parent_id"], len(subtree), level_delta)
        return detail

    def delete_category(self, category_id: int) -> None:
        with self.repository.transaction() as repo:
            node = self._require(repo, category_id)
            if repo.count_children(node.id):
                raise ConflictError(MSG_HAS_CHILDREN)
            repo.update(node.id, is_deleted=True)
        logger.info("Soft-deleted category %s (%r)", node.id, node.name)

    def batch_delete(self, category_ids: Iterable[int]) -> int:
        ids = list(dict.fromkeys(int(i) for i in category_ids))
        if not ids:
            raise InvalidInputError("Validation failed", {"ids": ["At least one category id is required"]})
        with self.repository.transaction() as repo:
            nodes = index_by_id(repo.find(ids=ids))
            missing = [i for i in ids if i not in nodes]
            if missing:
                raise NotFoundError(MSG_NOT_FOUND, {"ids": [f"Category {i} does not exist" for i in missing]})
            for category_id in ids:
                if repo.count_children(category_id):
                    name = nodes[category_id].name
                    raise ConflictError(f'Category "{name}" has subcategories and cannot be deleted', {"ids": [name]})
            deleted = repo.update_many(ids, is_deleted=True)
        logger.info("Soft-deleted %d categories in batch: %s", deleted, ids)
        return deleted

    def toggle_status(self, category_id: int, enabled: bool) -> CategoryDetail:
        """Enable only the node, or disable the node and its whole subtree."""
        with self.repository.transaction() as repo:
            node = self._require(repo, category_id)
            repo.update(node.id, is_enabled=bool(enabled))
            cascaded: list[int] = []
            if not enabled:
                # deleted rows included so a later restore cannot revive an enabled node under a disabled one
                grouped = children_index(repo.find(status=RecordStatus.ANY))
                cascaded = descendant_ids(grouped, node.id)
                repo.update_many(cascaded, is_enabled=False)
            detail = self._detail(repo, self._require(repo, node.id))
        logger.info("Category %s %s (%d descendants disabled)", node.id, "enabled" if enabled else "disabled", len(cascaded))
        return detail

    def restore_category(self, category_id: int) -> CategoryDetail:
        with self.repository.transaction() as repo:
            node = repo.get(category_id, RecordStatus.DELETED)
            if node is None:
                raise NotFoundError("Category does not exist or is not deleted")
            self._check_name(repo, node.name, exclude_id=node.id)
            level = 1
            if not node.is_top_level:
                parent = repo.get(node.parent_id)
                if parent is None:
                    raise ConflictError("Parent category is deleted; restore it first")
                level = parent.level + 1
                if level > MAX_LEVEL:
                    raise ConflictError(MSG_DEPTH)
            repo.update(node.id, is_deleted=False, level=level)
            detail = self._detail(repo, self._require(repo, node.id))
        logger.info("Restored category %s (%r)", node.id, node.name)
        return detail
