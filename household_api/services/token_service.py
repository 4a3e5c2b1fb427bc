"""Bearer token helpers (issue, validate, refresh, revoke)."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from household_api.core.config import get_settings
from household_api.core.errors import AuthExpiredError, InvalidCredentialError
from household_api.core.security import decode_token, encode_token
from household_api.repositories.ttl_store import TTLStore, get_ttl_store

logger = logging.getLogger(__name__)

TOKEN_TYPE = "Bearer"


@dataclass(frozen=True)
class IssuedToken:
    token: str
    token_type: str
    expires_in: int
    claims: dict[str, Any]


def _revoked_key(jti: str) -> str:
    return f"revoked:{jti}"


class TokenService:
    """JWT access tokens; revocations are TTL markers that die with the token."""

    def __init__(self, store: Optional[TTLStore] = None) -> None:
        self.settings = get_settings()
        self.store = store if store is not None else get_ttl_store()

    def _now(self) -> int:
        return int(datetime.now(timezone.utc).timestamp())

    def issue(self, user_id: int) -> IssuedToken:
        token, claims = encode_token(str(user_id), ttl_seconds=self.settings.jwt_ttl_seconds)
        return IssuedToken(token=token, token_type=TOKEN_TYPE, expires_in=self.settings.jwt_ttl_seconds, claims=claims)

    def is_revoked(self, jti: str) -> bool:
        return self.store.exists(_revoked_key(jti))

    def validate(self, token: str) -> dict[str, Any]:
        """Claims of a live, non-revoked token."""
        claims = decode_token(token)
        if self.is_revoked(claims["jti"]):
            raise InvalidCredentialError("Token has been revoked")
        return claims

    def revoke(self, claims: dict[str, Any]) -> None:
        remaining = int(claims.get("exp", 0)) - self._now()
        # a refreshable token outlives its exp; keep the marker for the refresh window
        refresh_deadline = int(claims.get("iat", 0)) + self.settings.jwt_refresh_ttl_seconds - self._now()
        ttl = max(remaining, refresh_deadline, 1)
        self.store.set_with_expiry(_revoked_key(claims["jti"]), "1", ttl)
        logger.info("Revoked token %s for user %s", claims["jti"], claims.get("sub"))

    def refresh(self, token: str) -> tuple[IssuedToken, int]:
        """Swap a (possibly expired) token still inside its refresh window for a new one."""
        claims = decode_token(token, verify_exp=False)
        if self.is_revoked(claims["jti"]):
            raise InvalidCredentialError("Token has been revoked")
        if int(claims["iat"]) + self.settings.jwt_refresh_ttl_seconds < self._now():
            raise AuthExpiredError("Token can no longer be refreshed")
        try:
            user_id = int(claims["sub"])
        except (TypeError, ValueError) as exc:
            raise InvalidCredentialError("Invalid token") from exc
        self.revoke(claims)
        return self.issue(user_id), user_id
