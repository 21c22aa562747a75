"""Helpers shared by the service layer for patches and constraint errors."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable

from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.errors import ConflictError, ValidationError

logger = logging.getLogger(__name__)

NO_FIELDS = "No valid fields provided for update."


def patch_values(payload: BaseModel, *, nullable: Iterable[str] = ()) -> Dict[str, Any]:
    """Return the fields the client actually sent.

    Explicit ``null`` is only accepted for columns listed in ``nullable``.
    """

    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError(NO_FIELDS)

    allowed_null = set(nullable)
    for name, value in changes.items():
        if value is None and name not in allowed_null:
            raise ValidationError(f"{name} cannot be null.")
    return changes


def apply_changes(entity: Any, changes: Dict[str, Any]) -> None:
    for name, value in changes.items():
        setattr(entity, name, value)


def flush_or_conflict(session: Session, detail: str) -> None:
    """Flush pending writes, turning constraint violations into a 409."""

    try:
        session.flush()
    except IntegrityError as exc:
        session.rollback()
        logger.info("integrity error translated to conflict: %s", exc.orig)
        raise ConflictError(detail) from exc
