"""High-level data access helpers for users, roles and permissions."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from household_api.core.errors import ConflictError, NotFoundError
from household_api.db.models import Permission, Role, User
from household_api.db.session import get_session


class UserRepository:
    """CRUD helpers wrapping the SQLAlchemy session."""

    # -------------------------- users --------------------------
    def get_user(self, user_id: int) -> Optional[User]:
        with get_session() as session:
            return session.get(User, user_id)

    def get_by_username(self, username: str) -> Optional[User]:
        with get_session() as session:
            stmt = select(User).where(User.username == username)
            return session.execute(stmt).scalar_one_or_none()

    def get_by_username_and_email(self, username: str, email: str) -> Optional[User]:
        with get_session() as session:
            stmt = select(User).where(User.username == username, User.email == email)
            return session.execute(stmt).scalar_one_or_none()

    def username_exists(self, username: str) -> bool:
        value = (username or "").strip()
        if not value:
            return False
        with get_session() as session:
            stmt = select(User.id).where(User.username == value).limit(1)
            return session.execute(stmt).first() is not None

    def list_users(self) -> list[User]:
        with get_session() as session:
            return list(session.execute(select(User).order_by(User.id)).scalars().all())

    def create_user(
        self,
        username: str,
        name: str,
        password_hash: str,
        *,
        email: str | None = None,
        phone: str | None = None,
        status: int = 1,
        roles: tuple[str, ...] = (),
    ) -> User:
        now = datetime.now(timezone.utc)
        entity = User(
            username=username,
            name=name,
            email=email,
            phone=phone,
            password_hash=password_hash,
            status=status,
            created_at=now,
            updated_at=now,
        )
        with get_session() as session:
            if roles:
                entity.roles = list(session.execute(select(Role).where(Role.name.in_(roles))).scalars())
            session.add(entity)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise ConflictError("Username already exists", {"username": ["Username already exists"]}) from exc
            session.refresh(entity)
            return entity

    def update_user_password(self, user_id: int, password_hash: str) -> None:
        with get_session() as session:
            stmt = (
                update(User)
                .where(User.id == user_id)
                .values(password_hash=password_hash, updated_at=datetime.now(timezone.utc))
            )
            session.execute(stmt)
            session.commit()

    def set_user_status(self, user_id: int, status: int) -> None:
        with get_session() as session:
            stmt = update(User).where(User.id == user_id).values(status=status, updated_at=datetime.now(timezone.utc))
            session.execute(stmt)
            session.commit()

    # -------------------------- roles / permissions --------------------------
    def role_exists(self, name: str) -> bool:
        with get_session() as session:
            return session.execute(select(Role.id).where(Role.name == name).limit(1)).first() is not None

    def assign_role(self, user_id: int, role_name: str) -> User:
        with get_session() as session:
            user = session.get(User, user_id)
            if not user:
                raise NotFoundError("User not found")
            role = session.execute(select(Role).where(Role.name == role_name)).scalar_one_or_none()
            if not role:
                raise NotFoundError(f"Role '{role_name}' does not exist")
            if role not in user.roles:
                user.roles.append(role)
                user.updated_at = datetime.now(timezone.utc)
            session.commit()
            session.refresh(user)
            return user

    def grant_permission(self, user_id: int, permission_name: str) -> None:
        with get_session() as session:
            user = session.get(User, user_id)
            if not user:
                raise NotFoundError("User not found")
            permission = session.execute(select(Permission).where(Permission.name == permission_name)).scalar_one_or_none()
            if not permission:
                raise NotFoundError(f"Permission '{permission_name}' does not exist")
            if permission not in user.permissions:
                user.permissions.append(permission)
            session.commit()


def role_names(user: User) -> list[str]:
    return sorted(role.name for role in user.roles)


def direct_permission_names(user: User) -> list[str]:
    return sorted(permission.name for permission in user.permissions)


def permission_names(user: User) -> list[str]:
    """Every permission granted to the user, through roles or directly."""
    names = {permission.name for permission in user.permissions}
    for role in user.roles:
        names.update(permission.name for permission in role.permissions)
    return sorted(names)
