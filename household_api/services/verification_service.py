"""
E-mail verification codes backed by a TTL key-value store.

Each (username, email, purpose) owns two independent records: the code itself
(default 5 minutes) and a send-throttle marker (default 60 seconds). A code can
still be verified after the throttle lapsed, and asking "may I send again" never
touches the code.
"""

from __future__ import annotations

import json
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from household_api.core.config import get_settings
from household_api.repositories.ttl_store import TTLStore, get_ttl_store

logger = logging.getLogger(__name__)

CODE_LENGTH = 6


@dataclass(frozen=True)
class IssuedCode:
    code: str
    expires_in: int
    issued_at: str


def _purpose_value(purpose) -> str:
    return getattr(purpose, "value", purpose)


def code_key(username: str, email: str, purpose: str) -> str:
    return f"code:{_purpose_value(purpose)}:{username}:{email}"


def limit_key(username: str, email: str, purpose: str) -> str:
    return f"limit:{_purpose_value(purpose)}:{username}:{email}"


def generate_code() -> str:
    """Uniform random numeric code, zero padded."""
    return str(secrets.randbelow(10**CODE_LENGTH)).zfill(CODE_LENGTH)


class VerificationCodeService:
    """Issues, throttles and validates short-lived numeric codes."""

    def __init__(
        self,
        store: Optional[TTLStore] = None,
        *,
        code_ttl: Optional[int] = None,
        send_limit: Optional[int] = None,
    ) -> None:
        settings = get_settings()
        self.store = store if store is not None else get_ttl_store()
        self.code_ttl = code_ttl if code_ttl is not None else settings.verification_code_ttl_seconds
        self.send_limit = send_limit if send_limit is not None else settings.verification_send_limit_seconds
        if self.code_ttl <= 0 or self.send_limit <= 0:
            raise ValueError("code_ttl and send_limit must be positive")

    def generate(self, username: str, email: str, purpose: str = "login", source_address: Optional[str] = None) -> IssuedCode:
        """Store a fresh code (replacing any previous one) and start the throttle window."""
        code = generate_code()
        issued_at = datetime.now(timezone.utc).isoformat()
        record = {
            "code": code,
            "username": username,
            "email": email,
            "purpose": _purpose_value(purpose),
            "source_address": source_address,
            "issued_at": issued_at,
        }
        self.store.set_with_expiry(code_key(username, email, purpose), json.dumps(record), self.code_ttl)
        self.store.set_with_expiry(limit_key(username, email, purpose), "1", self.send_limit)
        logger.info("Issued %s code for %s <%s> from %s", _purpose_value(purpose), username, email, source_address or "-")
        return IssuedCode(code=code, expires_in=self.code_ttl, issued_at=issued_at)

    def can_send_new(self, username: str, email: str, purpose: str = "login") -> bool:
        return not self.store.exists(limit_key(username, email, purpose))

    def verify(self, username: str, email: str, code: str, purpose: str = "login") -> bool:
        """True once per issued code; a mismatch leaves the code usable until it expires."""
        key = code_key(username, email, purpose)
        raw = self.store.get(key)
        if raw is None:
            return False
        try:
            stored = str(json.loads(raw).get("code", ""))
        except (ValueError, AttributeError):
            logger.warning("Discarding unreadable verification record under %s", key)
            self.store.delete(key)
            return False
        if not stored or not secrets.compare_digest(stored, str(code or "")):
            return False
        # compare-and-delete: a concurrent verify that already consumed it wins
        return self.store.delete_if_equals(key, raw)

    def time_to_live(self, username: str, email: str, purpose: str = "login") -> Optional[int]:
        return self.store.ttl(code_key(username, email, purpose))

    def send_limit_time_to_live(self, username: str, email: str, purpose: str = "login") -> Optional[int]:
        return self.store.ttl(limit_key(username, email, purpose))

    def clear(self, username: str, email: str, purpose: str = "login") -> bool:
        removed_code = self.store.delete(code_key(username, email, purpose))
        removed_limit = self.store.delete(limit_key(username, email, purpose))
        return removed_code or removed_limit
