from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass


@dataclass(slots=True)
class SecurityService:
    token_salt: str

    def hash_token(self, token: str) -> str:
        payload = f"{self.token_salt}:{token}".encode("utf-8")
        return hashlib.sha256(payload).hexdigest()

    def issue_token(self) -> tuple[str, str]:
        """Return a fresh ``(token, token_hash)`` pair."""
        token = secrets.token_urlsafe(32)
        return token, self.hash_token(token)
