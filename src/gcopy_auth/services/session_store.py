"""Session persistence behind an opaque cookie token."""

import json
import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

from fastapi import Request, Response
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from gcopy_auth.errors import StoreError
from gcopy_auth.models import SessionRecord

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def new_session_token() -> str:
    """Generate an unguessable session token."""
    return secrets.token_urlsafe(32)


@dataclass
class SessionHandle:
    """Values of one session plus what is needed to persist them."""

    token: str
    values: dict[str, Any] = field(default_factory=dict)
    max_age: int = 0
    is_new: bool = False


class SessionStore(Protocol):
    """Loads and saves sessions tied to a request/response exchange."""

    def get(self, request: Any) -> SessionHandle:
        """Load the caller's session, or start a new one. Raises StoreError."""
        ...

    def save(self, handle: SessionHandle, response: Any) -> None:
        """Persist *handle* and attach its token to *response*. Raises StoreError."""
        ...


class DatabaseSessionStore:
    """SessionStore backed by the ``sessions`` table."""

    def __init__(
        self,
        engine: Engine,
        cookie_name: str,
        max_age: int,
        secure: bool = False,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.engine = engine
        self.cookie_name = cookie_name
        self.max_age = max_age
        self.secure = secure
        self.clock = clock

    def get(self, request: Request) -> SessionHandle:
        token = request.cookies.get(self.cookie_name)
        if token:
            try:
                with Session(self.engine) as session:
                    record = session.get(SessionRecord, token)
            except SQLAlchemyError as e:
                logger.error(f"Session load failed: {e}")
                raise StoreError() from e

            if record is not None and _as_utc(record.expires_at) > self.clock():
                return SessionHandle(
                    token=record.token,
                    values=_decode(record.data),
                    max_age=record.max_age,
                )

        return SessionHandle(token=new_session_token(), max_age=self.max_age, is_new=True)

    def save(self, handle: SessionHandle, response: Response) -> None:
        now = self.clock()
        expires_at = now + timedelta(seconds=handle.max_age)
        try:
            with Session(self.engine) as session:
                record = session.get(SessionRecord, handle.token)
                if record is None:
                    record = SessionRecord(
                        token=handle.token,
                        max_age=handle.max_age,
                        created_at=now,
                        expires_at=expires_at,
                    )
                record.data = json.dumps(handle.values)
                record.max_age = handle.max_age
                record.updated_at = now
                record.expires_at = expires_at
                session.add(record)
                session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Session save failed: {e}")
            raise StoreError() from e

        handle.is_new = False
        response.set_cookie(
            key=self.cookie_name,
            value=handle.token,
            max_age=handle.max_age,
            path="/",
            httponly=True,
            secure=self.secure,
            samesite="lax",
        )


def _decode(data: str) -> dict[str, Any]:
    try:
        values = json.loads(data)
    except ValueError:
        return {}
    return values if isinstance(values, dict) else {}
