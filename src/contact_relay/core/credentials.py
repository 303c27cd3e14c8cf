"""
Short-lived credentials asserting the relay's identity to the webhook.
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional

import jwt

from .exceptions import ConfigurationError

ALGORITHM = "HS256"
TOKEN_TTL_SECONDS = 300


@dataclass(frozen=True)
class Credential:
    """Signed bearer token with its validity bounds (epoch seconds)."""
    token: str
    issued_at: int
    expires_at: int

    def authorization_header(self) -> str:
        return f"Bearer {self.token}"


class CredentialMinter:
    """
    Mints HS256 JWTs carrying only iat and exp.

    The secret is fixed for the life of the process.
    """

    def __init__(
        self,
        secret: str,
        ttl_seconds: int = TOKEN_TTL_SECONDS,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        if not secret:
            raise ConfigurationError("JWT secret is required")
        self._secret = secret
        self.ttl_seconds = ttl_seconds
        self.clock = clock or time.time

    def mint(self) -> Credential:
        issued_at = int(self.clock())
        expires_at = issued_at + self.ttl_seconds
        token = jwt.encode(
            {"iat": issued_at, "exp": expires_at},
            self._secret,
            algorithm=ALGORITHM,
        )
        return Credential(token=token, issued_at=issued_at, expires_at=expires_at)
