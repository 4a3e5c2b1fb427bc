"""Database helpers: engine/session access, schema creation and role seeding."""

from .create_tables import create_all
from .seed import DEFAULT_USER_ROLE, seed_roles_and_permissions
from .session import Base, get_engine, get_session, reset_engine

__all__ = [
    "Base",
    "DEFAULT_USER_ROLE",
    "create_all",
    "get_engine",
    "get_session",
    "reset_engine",
    "seed_roles_and_permissions",
]
