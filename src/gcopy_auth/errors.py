"""Error taxonomy of the authentication layer.

Each error carries the HTTP status the API surfaces it with. ``Unauthorized``
always renders the same message so a caller cannot tell which check failed.
"""

from typing import Optional


class AuthError(Exception):
    """Base class for all authentication errors."""

    status_code = 500
    default_message = "Internal Server Error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AuthError):
    """Malformed input: bad email shape, bad code format, empty share code."""

    status_code = 422
    default_message = "Invalid input"


class DeliveryError(AuthError):
    """The notification channel failed to deliver a code."""

    status_code = 500
    default_message = "Failed to deliver verification code"


class StoreError(AuthError):
    """The session store failed to load or persist a session."""

    status_code = 500
    default_message = "Session store unavailable"


class Unauthorized(AuthError):
    """A credential check failed."""

    status_code = 401
    default_message = "Unauthorized"

    def __init__(self):
        super().__init__(self.default_message)


class NotFound(AuthError):
    """No authenticated identity on the session."""

    status_code = 404
    default_message = "User not found"

    def __init__(self):
        super().__init__(self.default_message)
