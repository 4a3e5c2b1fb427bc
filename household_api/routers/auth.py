from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials

from household_api.core.errors import InvalidCredentialError
from household_api.core.rate_limiter import client_ip, rate_limit_ip
from household_api.core.responses import success
from household_api.db.models import User
from household_api.routers.deps import bearer_scheme, current_claims, get_auth_service
from household_api.schemas.auth import (
    EmailLoginRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SendEmailCodeRequest,
)
from household_api.services.auth_service import AuthService, user_to_dict

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register")
def register(payload: RegisterRequest, request: Request, auth: AuthService = Depends(get_auth_service)):
    rate_limit_ip(request, "register", limit=10, window_seconds=3600)
    user = auth.register(payload)
    return success(user_to_dict(user), "Registration successful", 201)


@router.post("/login")
def login(payload: LoginRequest, request: Request, auth: AuthService = Depends(get_auth_service)):
    rate_limit_ip(request, "login", limit=10, window_seconds=60)
    result = auth.login(payload)
    return success(result.to_dict(), "Login successful")


@router.post("/send-email-code")
def send_email_code(payload: SendEmailCodeRequest, request: Request, auth: AuthService = Depends(get_auth_service)):
    rate_limit_ip(request, "send-email-code", limit=20, window_seconds=3600)
    dispatch = auth.send_email_code(payload, source_address=client_ip(request))
    return success({"expires_in": dispatch.expires_in}, "Verification code sent")


@router.post("/email-login")
def email_login(payload: EmailLoginRequest, request: Request, auth: AuthService = Depends(get_auth_service)):
    rate_limit_ip(request, "email-login", limit=10, window_seconds=60)
    result = auth.email_login(payload)
    return success(result.to_dict(), "Login successful")


@router.post("/reset-password")
def reset_password(payload: ResetPasswordRequest, auth: AuthService = Depends(get_auth_service)):
    auth.reset_password(payload)
    return success(None, "Password has been reset")


@router.get("/check-username/{username}")
def check_username(username: str, auth: AuthService = Depends(get_auth_service)):
    available = auth.check_username(username)
    return success({"available": available}, "Username is available" if available else "Username is taken")


@router.post("/logout")
def logout(
    session: tuple[User, dict[str, Any]] = Depends(current_claims),
    auth: AuthService = Depends(get_auth_service),
):
    auth.logout(session[1])
    return success(None, "Logged out")


@router.post("/refresh")
def refresh(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth: AuthService = Depends(get_auth_service),
):
    if credentials is None or not credentials.credentials:
        raise InvalidCredentialError("Authentication required")
    result = auth.refresh(credentials.credentials)
    return success(result.to_dict(), "Token refreshed")
