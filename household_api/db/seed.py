"""Default roles and permissions of the platform."""
from __future__ import annotations

import logging

from sqlalchemy import select

from .models import Permission, Role
from .session import get_session

logger = logging.getLogger(__name__)

PERMISSIONS: tuple[str, ...] = (
    "manage-users",
    "view-users",
    "create-users",
    "edit-users",
    "delete-users",
    "manage-services",
    "view-services",
    "create-services",
    "edit-services",
    "delete-services",
    "manage-orders",
    "view-orders",
    "create-orders",
    "edit-orders",
    "delete-orders",
    "assign-orders",
    "manage-reviews",
    "view-reviews",
    "edit-reviews",
    "delete-reviews",
    "manage-finances",
    "view-finances",
    "manage-settings",
    "view-analytics",
)

# None means every permission
ROLE_PERMISSIONS: dict[str, tuple[str, ...] | None] = {
    "super-admin": None,
    "admin": (
        "manage-users",
        "view-users",
        "create-users",
        "edit-users",
        "manage-services",
        "view-services",
        "create-services",
        "edit-services",
        "manage-orders",
        "view-orders",
        "create-orders",
        "edit-orders",
        "assign-orders",
        "manage-reviews",
        "view-reviews",
        "edit-reviews",
        "view-finances",
        "view-analytics",
    ),
    "housekeeper": ("view-orders", "edit-orders", "view-services"),
    "user": ("view-services", "create-orders", "view-orders"),
    "support": ("view-users", "view-orders", "edit-orders", "view-reviews", "edit-reviews"),
}

DEFAULT_USER_ROLE = "user"


def seed_roles_and_permissions() -> None:
    """Create missing roles/permissions and sync their grants. Safe to re-run."""
    with get_session() as session:
        existing = {p.name: p for p in session.execute(select(Permission)).scalars()}
        for name in PERMISSIONS:
            if name not in existing:
                existing[name] = Permission(name=name)
                session.add(existing[name])
        roles = {r.name: r for r in session.execute(select(Role)).scalars()}
        for role_name, granted in ROLE_PERMISSIONS.items():
            role = roles.get(role_name)
            if role is None:
                role = Role(name=role_name)
                session.add(role)
            names = PERMISSIONS if granted is None else granted
            role.permissions = [existing[name] for name in names]
        session.commit()
    logger.info("Seeded %d roles and %d permissions", len(ROLE_PERMISSIONS), len(PERMISSIONS))
