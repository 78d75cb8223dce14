from __future__ import annotations

import logging
from collections.abc import Generator
from dataclasses import dataclass
from datetime import UTC, datetime

from fastapi import Depends, Header, Query
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from recruitflow.db.repositories import Repository
from recruitflow.db.session import get_db_session
from recruitflow.errors import AuthenticationError, InternalError, ValidationError
from recruitflow.types import DateRange, as_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TenantContext:
    user_id: int
    tenant_id: int


def get_db() -> Generator[Session, None, None]:
    yield from get_db_session()


def get_tenant_context(
    authorization: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> TenantContext:
    """Resolve the caller's active tenant from its bearer session token."""
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Unauthorized")

    repo = Repository(db)
    try:
        auth_session = repo.get_auth_session(token.strip())
        user = repo.get_user(auth_session.user_id) if auth_session is not None else None
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Session lookup failed")
        raise InternalError("Failed to resolve session") from exc

    if auth_session is None or as_utc(auth_session.expires_at) <= datetime.now(UTC):
        raise AuthenticationError("Unauthorized")

    if user is None:
        raise AuthenticationError("Unauthorized")

    return TenantContext(user_id=user.id, tenant_id=auth_session.active_tenant_id or user.company_id)


def get_date_range(
    start_date: datetime | None = Query(default=None, alias="startDate"),
    end_date: datetime | None = Query(default=None, alias="endDate"),
) -> DateRange:
    try:
        return DateRange(start_date=start_date, end_date=end_date)
    except PydanticValidationError as exc:
        raise ValidationError("startDate must not be after endDate") from exc
