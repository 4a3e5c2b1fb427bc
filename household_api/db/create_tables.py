"""Utility script to create the database schema and seed roles/permissions."""
from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from .session import Base, get_engine
from . import models  # noqa: F401  # ensure models are imported for metadata

logger = logging.getLogger(__name__)


def create_all() -> None:
    engine = get_engine()
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ensured on %s", engine.url.render_as_string(hide_password=True))


if __name__ == "__main__":
    from household_api.core.logging_config import configure_logging
    from .seed import seed_roles_and_permissions

    configure_logging()
    try:
        create_all()
        seed_roles_and_permissions()
        print("Database tables created successfully.")
    except SQLAlchemyError as exc:
        raise SystemExit(f"Failed to create tables: {exc}") from exc
