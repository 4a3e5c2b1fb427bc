"""Current-user and role/permission probe endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from household_api.core.responses import success
from household_api.db.models import User
from household_api.routers.deps import current_user, get_auth_service, require_permission, require_role
from household_api.schemas.auth import AssignRoleRequest
from household_api.services.auth_service import AuthService, user_to_dict

router = APIRouter(tags=["users"])


@router.get("/user/me")
def me(user: User = Depends(current_user), auth: AuthService = Depends(get_auth_service)):
    data = user_to_dict(user)
    data.update(auth.permissions_of(user))
    return success(data)


@router.post("/test/assign-role")
def assign_role(
    payload: AssignRoleRequest,
    _: User = Depends(require_role("super-admin")),
    auth: AuthService = Depends(get_auth_service),
):
    return success(auth.assign_role(payload.user_id, payload.role), "Role assigned")


@router.get("/test/permissions")
def permissions(user: User = Depends(current_user), auth: AuthService = Depends(get_auth_service)):
    return success(auth.permissions_of(user))


@router.get("/test/admin-only")
def admin_only(user: User = Depends(require_role("admin", "super-admin"))):
    return success({"username": user.username}, "Admin access granted")


@router.get("/test/manage-users")
def manage_users(user: User = Depends(require_permission("manage-users"))):
    return success({"username": user.username}, "manage-users permission granted")
