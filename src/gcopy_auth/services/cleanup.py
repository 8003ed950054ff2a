"""Cleanup service for expired session records.

Share codes are not touched here; their expiry is only ever evaluated when a
code is presented.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Session, select

from gcopy_auth.models import SessionRecord

logger = logging.getLogger(__name__)


def cleanup_expired_sessions(session: Session, now: Optional[datetime] = None) -> int:
    """Delete session records past their expiry. Returns count of deleted rows."""
    now = now or datetime.now(timezone.utc)

    expired = session.exec(select(SessionRecord).where(SessionRecord.expires_at < now)).all()

    count = 0
    for record in expired:
        session.delete(record)
        count += 1

    if count > 0:
        session.commit()
        logger.info(f"Cleaned up {count} expired sessions")

    return count
