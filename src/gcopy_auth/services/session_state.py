"""Typed view over the opaque session values.

The session store only knows a ``dict`` of JSON-friendly values. This module
is the single place that reads and writes those keys, checking types on read
so a corrupted or foreign value is treated as absent instead of trusted.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

KEY_LOGGED_IN = "loggedIn"
KEY_LOGIN_TYPE = "loginType"
KEY_EMAIL = "email"
KEY_CODE = "code"
KEY_SHARE_CODE = "shareCode"
KEY_VALIDATE_AT = "validateAt"


class LoginType(str, Enum):
    """Authentication mode of a session."""

    EMAIL = "email"
    CODE = "code"


@dataclass(frozen=True)
class PendingEmailChallenge:
    """A mailed code awaiting redemption."""

    email: str
    code: str
    issued_at: datetime


@dataclass
class SessionState:
    """Authentication fields of one client session."""

    logged_in: bool = False
    login_type: Optional[LoginType] = None
    email: str = ""
    code: str = ""
    share_code: str = ""
    validate_at: Optional[datetime] = None

    @property
    def pending_challenge(self) -> Optional[PendingEmailChallenge]:
        """The outstanding email challenge, if any."""
        if self.logged_in or not (self.email and self.code and self.validate_at):
            return None
        return PendingEmailChallenge(self.email, self.code, self.validate_at)

    def begin_email_challenge(self, email: str, code: str, now: datetime) -> None:
        """Replace all fields with a fresh pending challenge."""
        self.clear()
        self.email = email
        self.code = code
        self.validate_at = now

    def promote_email(self, now: datetime) -> None:
        """Mark the pending challenge as redeemed."""
        self.logged_in = True
        self.login_type = LoginType.EMAIL
        self.validate_at = now

    def enter_share_code(self, share_code: str) -> None:
        """Switch to share-code mode, dropping every email field."""
        self.clear()
        self.logged_in = True
        self.login_type = LoginType.CODE
        self.share_code = share_code

    def clear(self) -> None:
        self.logged_in = False
        self.login_type = None
        self.email = ""
        self.code = ""
        self.share_code = ""
        self.validate_at = None

    @classmethod
    def from_values(cls, values: dict[str, Any]) -> "SessionState":
        """Deserialize from store values, ignoring keys of the wrong type."""
        login_type = None
        raw_type = values.get(KEY_LOGIN_TYPE)
        if isinstance(raw_type, str):
            try:
                login_type = LoginType(raw_type)
            except ValueError:
                login_type = None

        validate_at = None
        raw_validate_at = values.get(KEY_VALIDATE_AT)
        # bool is an int subclass and never a timestamp
        if isinstance(raw_validate_at, (int, float)) and not isinstance(raw_validate_at, bool):
            validate_at = datetime.fromtimestamp(raw_validate_at, tz=timezone.utc)

        return cls(
            logged_in=values.get(KEY_LOGGED_IN) is True,
            login_type=login_type,
            email=_str_value(values, KEY_EMAIL),
            code=_str_value(values, KEY_CODE),
            share_code=_str_value(values, KEY_SHARE_CODE),
            validate_at=validate_at,
        )

    def to_values(self) -> dict[str, Any]:
        """Serialize to store values. Empty fields are omitted."""
        values: dict[str, Any] = {}
        if self.logged_in or self.email or self.share_code:
            values[KEY_LOGGED_IN] = self.logged_in
        if self.login_type is not None:
            values[KEY_LOGIN_TYPE] = self.login_type.value
        if self.email:
            values[KEY_EMAIL] = self.email
        if self.code:
            values[KEY_CODE] = self.code
        if self.share_code:
            values[KEY_SHARE_CODE] = self.share_code
        if self.validate_at is not None:
            values[KEY_VALIDATE_AT] = int(self.validate_at.timestamp())
        return values


def _str_value(values: dict[str, Any], key: str) -> str:
    value = values.get(key)
    return value if isinstance(value, str) else ""
