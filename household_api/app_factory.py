"""
ASGI entry point.

    uvicorn household_api.app_factory:app
    uvicorn --factory household_api.app_factory:create_app
"""
from household_api.app import app, create_app

__all__ = ["app", "create_app"]
