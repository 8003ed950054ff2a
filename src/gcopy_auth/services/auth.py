"""Authentication state machine.

A session moves through these states:

    Anonymous -> PendingEmailCode -> AuthenticatedEmail
    Anonymous -> AuthenticatedShareCode

Both authenticated states last until logout, and either branch can be
re-entered at any time. Entering one mode wipes the other mode's fields.
"""

import hmac
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from gcopy_auth.errors import NotFound, Unauthorized, ValidationError
from gcopy_auth.services.codes import generate_code, is_valid_code
from gcopy_auth.services.notifier import ClientDescriptor, Notifier, build_code_message
from gcopy_auth.services.session_state import LoginType, SessionState
from gcopy_auth.services.session_store import SessionStore
from gcopy_auth.services.share_codes import ShareCodeRegistry

logger = logging.getLogger(__name__)

EMAIL_REGEX = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

EMAIL_CODE_TTL = timedelta(minutes=5)
SHARE_CODE_TTL = timedelta(minutes=5)
SESSION_MAX_AGE = timedelta(days=30)
SHARE_CODE_SESSION_MAX_AGE = timedelta(hours=8)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def mask_email(email: str) -> str:
    """Shorten an address for log output."""
    local, _, domain = email.partition("@")
    return f"{local[:3]}***@{domain}"


def validate_email(email: str) -> str:
    """Return *email* if well formed, else raise ValidationError."""
    if not email or not EMAIL_REGEX.match(email):
        raise ValidationError("Invalid email format")
    return email


@dataclass(frozen=True)
class Identity:
    """Who an authenticated session belongs to."""

    subject: str
    mode: LoginType

    @property
    def principal(self) -> str:
        """Subject namespaced for downstream authorization."""
        if self.mode is LoginType.CODE:
            return f"code:{self.subject}"
        return self.subject


class AuthService:
    """Email one-time-code and share-code login over a session store.

    ``request`` and ``response`` arguments are passed through untouched to
    the session store, which decides how a session is located and returned
    to the client.
    """

    def __init__(
        self,
        registry: ShareCodeRegistry,
        notifier: Notifier,
        store: SessionStore,
        email_code_ttl: timedelta = EMAIL_CODE_TTL,
        share_code_ttl: timedelta = SHARE_CODE_TTL,
        session_max_age: timedelta = SESSION_MAX_AGE,
        share_code_session_max_age: timedelta = SHARE_CODE_SESSION_MAX_AGE,
        clock: Callable[[], datetime] = _utc_now,
        code_generator: Callable[[], str] = generate_code,
    ):
        self.registry = registry
        self.notifier = notifier
        self.store = store
        self.email_code_ttl = email_code_ttl
        self.share_code_ttl = share_code_ttl
        self.session_max_age = session_max_age
        self.share_code_session_max_age = share_code_session_max_age
        self.clock = clock
        self.code_generator = code_generator

    def request_email_code(
        self,
        request: Any,
        response: Any,
        email: str,
        language: Optional[str] = None,
        client: Optional[ClientDescriptor] = None,
    ) -> None:
        """Mail a fresh code to *email* and make it the session's only pending challenge.

        The session is written only after the notifier accepted the message,
        so a DeliveryError leaves it untouched.
        """
        validate_email(email)
        code = self.code_generator()
        subject, body = build_code_message(code, language, client)
        self.notifier.send(email, subject, body)

        handle = self.store.get(request)
        state = SessionState.from_values(handle.values)
        state.begin_email_challenge(email, code, self.clock())
        handle.values = state.to_values()
        handle.max_age = int(self.session_max_age.total_seconds())
        self.store.save(handle, response)
        logger.info("Verification code sent to %s", mask_email(email))

    def submit_email_code(self, request: Any, response: Any, email: str, code: str) -> Identity:
        """Redeem the pending challenge.

        A session that is already logged in gets its current identity back
        without looking at the submitted values.
        """
        validate_email(email)
        if not is_valid_code(code):
            raise ValidationError("Code must be 6 digits")

        handle = self.store.get(request)
        state = SessionState.from_values(handle.values)

        if state.logged_in:
            identity = self._resolve(state)
            if identity is None:
                raise Unauthorized()
            return identity

        now = self.clock()
        challenge = state.pending_challenge
        if (
            challenge is None
            or challenge.email != email
            or not hmac.compare_digest(challenge.code.encode(), code.encode())
            or now - challenge.issued_at > self.email_code_ttl
        ):
            logger.warning("Rejected email code login for %s", mask_email(email))
            raise Unauthorized()

        state.promote_email(now)
        handle.values = state.to_values()
        self.store.save(handle, response)
        logger.info("Email login for %s", mask_email(email))
        return Identity(subject=email, mode=LoginType.EMAIL)

    def submit_share_code(self, request: Any, response: Any, code: str) -> Identity:
        """Join the live group for *code*, or start one if there is none."""
        if not code or not code.strip():
            raise ValidationError("Share code is required")

        _, created = self.registry.join_or_create(code, self.clock(), self.share_code_ttl)

        handle = self.store.get(request)
        state = SessionState.from_values(handle.values)
        state.enter_share_code(code)
        handle.values = state.to_values()
        handle.max_age = int(self.share_code_session_max_age.total_seconds())
        self.store.save(handle, response)
        logger.info("Share code login (%s group)", "new" if created else "joined")
        return Identity(subject=code, mode=LoginType.CODE)

    def refresh_share_code(self, request: Any) -> tuple[str, datetime]:
        """Push the session's share code expiry to now + TTL.

        The registry entry is overwritten even when it already lapsed.
        """
        state = SessionState.from_values(self.store.get(request).values)
        if not state.logged_in or state.login_type is not LoginType.CODE or not state.share_code:
            raise Unauthorized()

        expires_at = self.clock() + self.share_code_ttl
        self.registry.upsert(state.share_code, expires_at)
        logger.info("Share code refreshed until %s", expires_at.isoformat())
        return state.share_code, expires_at

    def logout(self, request: Any, response: Any) -> None:
        """Drop every session field."""
        handle = self.store.get(request)
        had_values = bool(handle.values)
        handle.values = {}
        self.store.save(handle, response)
        if had_values:
            logger.info("Session logged out")

    def current_identity(self, request: Any, response: Any) -> Identity:
        """Who-am-I query. Raises NotFound when there is no identity."""
        handle = self.store.get(request)
        identity = self._resolve(SessionState.from_values(handle.values))
        if identity is None:
            raise NotFound()
        # Re-saving renews the session cookie.
        self.store.save(handle, response)
        return identity

    def require_identity(self, request: Any) -> Identity:
        """Access guard. Any missing or inconsistent identity is Unauthorized."""
        identity = self._resolve(SessionState.from_values(self.store.get(request).values))
        if identity is None:
            raise Unauthorized()
        return identity

    @staticmethod
    def _resolve(state: SessionState) -> Optional[Identity]:
        if not state.logged_in:
            return None
        if state.login_type is LoginType.CODE:
            if not state.share_code:
                return None
            return Identity(subject=state.share_code, mode=LoginType.CODE)
        # Sessions without a login type predate share codes and are email logins.
        if not state.email:
            return None
        return Identity(subject=state.email, mode=LoginType.EMAIL)
