"""
Shared FastAPI dependencies: service lookup, bearer auth and permission gates.

Services are taken from ``app.state`` when the app factory (or a test) placed
them there, so a single TTL store and repository are shared per app.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from household_api.core.errors import ForbiddenError, InvalidCredentialError
from household_api.db.models import User
from household_api.repositories.user_repository import permission_names, role_names
from household_api.services.auth_service import AuthService
from household_api.services.category_service import CategoryService

bearer_scheme = HTTPBearer(auto_error=False)


def _state(request: Request, name: str, factory: Callable[[], Any]) -> Any:
    state = request.app.state
    service = getattr(state, name, None)
    if service is None:
        service = factory()
        setattr(state, name, service)
    return service


def get_auth_service(request: Request) -> AuthService:
    return _state(request, "auth_service", AuthService)


def get_category_service(request: Request) -> CategoryService:
    return _state(request, "category_service", CategoryService)


def current_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth: AuthService = Depends(get_auth_service),
) -> tuple[User, dict[str, Any]]:
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise InvalidCredentialError("Authentication required")
    return auth.authenticate(credentials.credentials)


def current_user(session: tuple[User, dict[str, Any]] = Depends(current_claims)) -> User:
    return session[0]


def require_permission(name: str) -> Callable[..., User]:
    """Dependency that lets the request through only when the user holds ``name``."""

    def _check(user: User = Depends(current_user)) -> User:
        if name not in permission_names(user):
            raise ForbiddenError(f"Missing permission: {name}")
        return user

    return _check


def require_role(*names: str) -> Callable[..., User]:
    wanted = set(names)

    def _check(user: User = Depends(current_user)) -> User:
        if not wanted.intersection(role_names(user)):
            raise ForbiddenError("Insufficient role")
        return user

    return _check
