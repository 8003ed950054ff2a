"""Database models using SQLModel."""

from datetime import datetime, timezone

from sqlmodel import Field, SQLModel


def _utc_now() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(timezone.utc)


class SessionRecord(SQLModel, table=True):
    """Persisted values of one client session, keyed by its cookie token."""

    __tablename__ = "sessions"

    token: str = Field(primary_key=True, max_length=64)
    data: str = Field(default="{}")  # JSON object of session values
    max_age: int
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)
    expires_at: datetime = Field(index=True)
