"""SQLAlchemy-backed store for service-category rows."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterable, Iterator, Optional

from sqlalchemy import Select, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from household_api.core.errors import ConflictError, UnavailableError
from household_api.db.models import ServiceCategory
from household_api.db.session import get_session
from household_api.domain.categories import CategoryNode, RecordStatus

logger = logging.getLogger(__name__)

_WRITABLE = {"name", "parent_id", "level", "sort_order", "is_enabled", "icon", "description", "is_deleted"}


def _to_node(row: ServiceCategory) -> CategoryNode:
    return CategoryNode(
        id=row.id,
        name=row.name,
        parent_id=row.parent_id,
        level=row.level,
        sort_order=row.sort_order,
        is_enabled=bool(row.is_enabled),
        icon=row.icon,
        description=row.description,
        is_deleted=bool(row.is_deleted),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _with_status(stmt: Select, status: RecordStatus) -> Select:
    if status is RecordStatus.ACTIVE:
        return stmt.where(ServiceCategory.is_deleted.is_(False))
    if status is RecordStatus.DELETED:
        return stmt.where(ServiceCategory.is_deleted.is_(True))
    return stmt


def _clean(values: dict[str, Any]) -> dict[str, Any]:
    unknown = set(values) - _WRITABLE
    if unknown:
        raise ValueError(f"Unknown category fields: {sorted(unknown)}")
    return dict(values)


class CategoryRepository:
    """
    CRUD helpers wrapping the SQLAlchemy session.

    A repository created without a session opens one per call and commits each
    write. Inside ``transaction()`` the yielded repository shares one session
    and only flushes; the commit (or rollback) happens when the block exits.
    Reads repopulate already loaded rows since bulk UPDATEs bypass the
    identity map.
    """

    def __init__(self, session: Optional[Session] = None) -> None:
        self._session = session

    @contextmanager
    def _use(self) -> Iterator[Session]:
        if self._session is not None:
            yield self._session
            return
        try:
            with get_session() as session:
                yield session
        except IntegrityError as exc:
            raise ConflictError("Category name already exists") from exc
        except SQLAlchemyError as exc:
            logger.error("Category store call failed: %s", exc)
            raise UnavailableError("Category store is unavailable") from exc

    def _finish(self, session: Session) -> None:
        if self._session is None:
            session.commit()
        else:
            session.flush()

    @contextmanager
    def transaction(self) -> Iterator["CategoryRepository"]:
        """Run a block atomically; nested calls join the outer transaction."""
        if self._session is not None:
            yield self
            return
        with get_session() as session:
            try:
                yield CategoryRepository(session)
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise ConflictError("Category name already exists") from exc
            except SQLAlchemyError as exc:
                session.rollback()
                logger.error("Category transaction rolled back: %s", exc)
                raise UnavailableError("Category store is unavailable") from exc
            except Exception:
                session.rollback()
                raise

    # -------------------------- reads --------------------------
    def get(self, category_id: int, status: RecordStatus = RecordStatus.ACTIVE) -> Optional[CategoryNode]:
        stmt = _with_status(select(ServiceCategory).where(ServiceCategory.id == category_id), status)
        stmt = stmt.execution_options(populate_existing=True)
        with self._use() as session:
            row = session.execute(stmt).scalar_one_or_none()
            return _to_node(row) if row else None

    def find(
        self,
        *,
        status: RecordStatus = RecordStatus.ACTIVE,
        enabled: Optional[bool] = None,
        parent_id: Optional[int] = None,
        level: Optional[int] = None,
        ids: Optional[Iterable[int]] = None,
    ) -> list[CategoryNode]:
        """Rows matching every given filter, ordered by (sort_order, id)."""
        stmt = _with_status(select(ServiceCategory), status)
        if enabled is not None:
            stmt = stmt.where(ServiceCategory.is_enabled.is_(enabled))
        if parent_id is not None:
            stmt = stmt.where(ServiceCategory.parent_id == parent_id)
        if level is not None:
            stmt = stmt.where(ServiceCategory.level == level)
        if ids is not None:
            stmt = stmt.where(ServiceCategory.id.in_(list(ids)))
        stmt = stmt.order_by(ServiceCategory.sort_order.asc(), ServiceCategory.id.asc()).execution_options(populate_existing=True)
        with self._use() as session:
            return [_to_node(row) for row in session.execute(stmt).scalars().all()]

    def name_taken(self, name: str, *, exclude_id: Optional[int] = None) -> bool:
        stmt = _with_status(select(ServiceCategory.id).where(ServiceCategory.name == name), RecordStatus.ACTIVE)
        if exclude_id is not None:
            stmt = stmt.where(ServiceCategory.id != exclude_id)
        with self._use() as session:
            return session.execute(stmt.limit(1)).first() is not None

    def count_children(self, category_id: int) -> int:
        stmt = _with_status(
            select(func.count()).select_from(ServiceCategory).where(ServiceCategory.parent_id == category_id),
            RecordStatus.ACTIVE,
        )
        with self._use() as session:
            return int(session.execute(stmt).scalar_one())

    # -------------------------- writes --------------------------
    def insert(self, **values: Any) -> CategoryNode:
        now = datetime.now(timezone.utc)
        entity = ServiceCategory(**_clean(values), created_at=now, updated_at=now)
        with self._use() as session:
            session.add(entity)
            self._finish(session)
            session.refresh(entity)
            return _to_node(entity)

    def update(self, category_id: int, **values: Any) -> None:
        self.update_many([category_id], **values)

    def update_many(self, category_ids: Iterable[int], **values: Any) -> int:
        ids = list(category_ids)
        if not ids or not values:
            return 0
        stmt = (
            update(ServiceCategory)
            .where(ServiceCategory.id.in_(ids))
            .values(**_clean(values), updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        with self._use() as session:
            result = session.execute(stmt)
            self._finish(session)
            return int(result.rowcount or 0)

    def shift_levels(self, category_ids: Iterable[int], delta: int) -> int:
        """Add ``delta`` to the level of every given row in one statement."""
        ids = list(category_ids)
        if not ids or delta == 0:
            return 0
        stmt = (
            update(ServiceCategory)
            .where(ServiceCategory.id.in_(ids))
            .values(level=ServiceCategory.level + delta, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        with self._use() as session:
            result = session.execute(stmt)
            self._finish(session)
            return int(result.rowcount or 0)
