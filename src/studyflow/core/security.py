"""Credential hashing, token issuance and the bearer-token dependency."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from .config import get_settings
from .errors import AuthenticationError

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
bearer_scheme = HTTPBearer(auto_error=False)


def hash_secret(raw: str) -> str:
    """Hash a password or PIN for storage."""

    return pwd_context.hash(raw)


def verify_secret(raw: str, hashed: Optional[str]) -> bool:
    if not raw or not hashed:
        return False
    try:
        return pwd_context.verify(raw, hashed)
    except ValueError:
        # unrecognised hash format in the column
        return False


@dataclass(frozen=True)
class Claims:
    """Authenticated principal extracted from a verified token."""

    user_id: int
    role: str
    username: str
    full_name: Optional[str] = None


class TokenVerifier:
    """Issues and verifies stateless HS256 access tokens.

    Handlers only depend on ``verify`` and ``issue`` so a revocation list or
    key rotation can be added here without touching them.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", ttl_seconds: int = 3600) -> None:
        self.secret = secret
        self.algorithm = algorithm
        self.ttl_seconds = ttl_seconds

    def issue(self, *, user_id: int, username: str, role: str, full_name: Optional[str] = None) -> str:
        issued_at = int(time.time())
        payload = {
            "user_id": user_id,
            "user": username,
            "role": role,
            "full_name": full_name,
            "iat": issued_at,
            "exp": issued_at + self.ttl_seconds,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> Claims:
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as exc:
            logger.debug("token rejected: %s", exc)
            raise AuthenticationError("Invalid or expired token") from exc

        user_id = payload.get("user_id")
        role = payload.get("role")
        if not isinstance(user_id, int) or not role:
            raise AuthenticationError("Invalid or expired token")

        return Claims(
            user_id=user_id,
            role=role,
            username=payload.get("user") or "",
            full_name=payload.get("full_name"),
        )


@lru_cache(maxsize=1)
def get_token_verifier() -> TokenVerifier:
    """Return the process-wide verifier built from settings."""

    settings = get_settings()
    return TokenVerifier(
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        ttl_seconds=settings.token_ttl_seconds,
    )


def get_current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> Claims:
    """Resolve the bearer token on the request into ``Claims``."""

    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Token not provided")
    return verifier.verify(credentials.credentials)
