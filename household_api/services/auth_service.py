"""
Authentication and identity related use cases.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from household_api.core.errors import (
    AuthExpiredError,
    ConflictError,
    ForbiddenError,
    InvalidCredentialError,
    InvalidInputError,
    NotFoundError,
    RateLimitedError,
)
from household_api.core.mailer import send_verification_code
from household_api.core.security import hash_password, verify_password
from household_api.db.models import User
from household_api.db.seed import DEFAULT_USER_ROLE
from household_api.repositories.user_repository import (
    UserRepository,
    direct_permission_names,
    permission_names,
    role_names,
)
from household_api.schemas import VALIDATION_FAILED, parse_payload
from household_api.schemas.auth import (
    CodePurpose,
    EmailLoginRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SendEmailCodeRequest,
)
from household_api.services.token_service import IssuedToken, TokenService
from household_api.services.verification_service import VerificationCodeService

logger = logging.getLogger(__name__)


class InvalidCodeError(AuthExpiredError):
    """Verification code mismatch, already used, or expired."""

    status_code = 400


@dataclass
class LoginResult:
    user: User
    token: IssuedToken

    def to_dict(self) -> dict[str, Any]:
        return {
            "user": user_to_dict(self.user),
            "token": self.token.token,
            "token_type": self.token.token_type,
            "expires_in": self.token.expires_in,
        }


@dataclass
class CodeDispatch:
    expires_in: int
    email_sent: bool


def user_to_dict(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "username": user.username,
        "name": user.name,
        "email": user.email,
        "phone": user.phone,
        "avatar": user.avatar,
        "status": user.status,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


@dataclass
class AuthService:
    """Handles registration, password/code login, token lifecycle and role grants."""

    users: UserRepository = field(default_factory=UserRepository)
    codes: VerificationCodeService = field(default_factory=VerificationCodeService)
    tokens: TokenService = field(default_factory=TokenService)

    # -------------------------------------- helpers --------------------------------------
    def _ensure_active(self, user: User) -> None:
        if not user.is_active:
            raise ForbiddenError("Account is disabled")

    def _login(self, user: User) -> LoginResult:
        self._ensure_active(user)
        return LoginResult(user=user, token=self.tokens.issue(user.id))

    # -------------------------------------- registration --------------------------------------
    def register(self, data: RegisterRequest | Mapping[str, Any]) -> User:
        payload = parse_payload(RegisterRequest, data)
        if self.users.username_exists(payload.username):
            raise ConflictError("Username already exists", {"username": ["Username already exists"]})
        roles = (DEFAULT_USER_ROLE,) if self.users.role_exists(DEFAULT_USER_ROLE) else ()
        user = self.users.create_user(
            payload.username,
            payload.name,
            hash_password(payload.password),
            email=payload.email,
            phone=payload.phone,
            roles=roles,
        )
        logger.info("Registered user %s (%s)", user.id, user.username)
        return user

    def check_username(self, username: str) -> bool:
        """True when the username is still available."""
        return not self.users.username_exists(username)

    # -------------------------------------- login --------------------------------------
    def login(self, data: LoginRequest | Mapping[str, Any]) -> LoginResult:
        payload = parse_payload(LoginRequest, data)
        user = self.users.get_by_username(payload.username)
        if not user or not verify_password(payload.password, user.password_hash):
            raise InvalidCredentialError("Invalid username or password")
        return self._login(user)

    def send_email_code(self, data: SendEmailCodeRequest | Mapping[str, Any], source_address: Optional[str] = None) -> CodeDispatch:
        payload = parse_payload(SendEmailCodeRequest, data)
        if not self.users.get_by_username_and_email(payload.username, payload.email):
            raise InvalidInputError(VALIDATION_FAILED, {"user": ["Username and e-mail do not match any user"]})
        purpose = payload.purpose.value
        if not self.codes.can_send_new(payload.username, payload.email, purpose):
            remaining = self.codes.send_limit_time_to_live(payload.username, payload.email, purpose) or 1
            raise RateLimitedError(f"Please wait {remaining} seconds before requesting a new code", retry_after=remaining)
        issued = self.codes.generate(payload.username, payload.email, purpose, source_address)
        email_sent = send_verification_code(payload.email, issued.code, purpose, issued.expires_in)
        if not email_sent:
            logger.warning("Verification code for %s was stored but the e-mail was not sent", payload.username)
        return CodeDispatch(expires_in=issued.expires_in, email_sent=email_sent)

    def email_login(self, data: EmailLoginRequest | Mapping[str, Any]) -> LoginResult:
        payload = parse_payload(EmailLoginRequest, data)
        if not self.codes.verify(payload.username, payload.email, payload.code, CodePurpose.LOGIN.value):
            raise InvalidCodeError("Verification code is invalid or expired")
        user = self.users.get_by_username_and_email(payload.username, payload.email)
        if not user:
            raise NotFoundError("Username and e-mail do not match")
        return self._login(user)

    def reset_password(self, data: ResetPasswordRequest | Mapping[str, Any]) -> User:
        payload = parse_payload(ResetPasswordRequest, data)
        if not self.codes.verify(payload.username, payload.email, payload.code, CodePurpose.RESET_PASSWORD.value):
            raise InvalidCodeError("Verification code is invalid or expired")
        user = self.users.get_by_username_and_email(payload.username, payload.email)
        if not user:
            raise NotFoundError("Username and e-mail do not match")
        self.users.update_user_password(user.id, hash_password(payload.password))
        logger.info("Password reset for user %s", user.id)
        return user

    # -------------------------------------- tokens --------------------------------------
    def authenticate(self, token: str) -> tuple[User, dict[str, Any]]:
        """Resolve a bearer token to its (active) user and claims."""
        claims = self.tokens.validate(token)
        try:
            user = self.users.get_user(int(claims["sub"]))
        except (TypeError, ValueError):
            user = None
        if not user:
            raise InvalidCredentialError("Invalid token")
        self._ensure_active(user)
        return user, claims

    def refresh(self, token: str) -> LoginResult:
        issued, user_id = self.tokens.refresh(token)
        user = self.users.get_user(user_id)
        if not user:
            raise InvalidCredentialError("Invalid token")
        self._ensure_active(user)
        return LoginResult(user=user, token=issued)

    def logout(self, claims: dict[str, Any]) -> None:
        self.tokens.revoke(claims)

    # -------------------------------------- roles --------------------------------------
    def assign_role(self, user_id: int, role: str) -> dict[str, Any]:
        user = self.users.assign_role(user_id, role)
        logger.info("Assigned role %s to user %s", role, user_id)
        return {
            "user_id": user.id,
            "username": user.username,
            "role": role,
            "roles": role_names(user),
            "permissions": permission_names(user),
        }

    def permissions_of(self, user: User) -> dict[str, Any]:
        return {
            "user_id": user.id,
            "username": user.username,
            "roles": role_names(user),
            "permissions": permission_names(user),
            "direct_permissions": direct_permission_names(user),
        }
