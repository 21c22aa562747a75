"""Login against stored credentials."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.errors import AuthenticationError, ValidationError
from ..core.security import TokenVerifier, verify_secret
from ..models import User

logger = logging.getLogger(__name__)


def authenticate(
    session: Session,
    *,
    username: Optional[str],
    password: Optional[str],
) -> User:
    """Return the user whose password or PIN matches ``password``."""

    if not username or not password:
        raise ValidationError("Username and password required")

    user = session.execute(select(User).where(User.username == username)).scalar_one_or_none()
    if user is None:
        logger.info("login failed for unknown user %r", username)
        raise AuthenticationError("Invalid credentials")

    if not (verify_secret(password, user.password_hash) or verify_secret(password, user.pin_hash)):
        logger.info("login failed for user %s", user.user_id)
        raise AuthenticationError("Invalid credentials")

    return user


def login(
    session: Session,
    verifier: TokenVerifier,
    *,
    username: Optional[str],
    password: Optional[str],
) -> tuple[str, User]:
    """Authenticate and issue an access token."""

    user = authenticate(session, username=username, password=password)
    token = verifier.issue(
        user_id=user.user_id,
        username=user.username,
        role=user.role.value,
        full_name=user.full_name,
    )
    return token, user
