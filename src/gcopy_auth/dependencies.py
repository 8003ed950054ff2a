"""FastAPI dependency wiring for the auth service."""

from datetime import timedelta
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request

from gcopy_auth.config import settings
from gcopy_auth.database import engine
from gcopy_auth.services.auth import AuthService, Identity
from gcopy_auth.services.notifier import ClientDescriptor, SMTPNotifier, parse_user_agent
from gcopy_auth.services.session_store import DatabaseSessionStore
from gcopy_auth.services.share_codes import InMemoryShareCodeRegistry

# One registry per process; every session's share code lookups go through it.
share_code_registry = InMemoryShareCodeRegistry()


@lru_cache
def get_auth_service() -> AuthService:
    """Build the process-wide AuthService from settings."""
    notifier = SMTPNotifier(
        host=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.smtp_username,
        password=settings.smtp_password,
        sender=settings.sender_address,
        sender_name=settings.smtp_sender_name,
        use_ssl=settings.smtp_ssl,
    )
    store = DatabaseSessionStore(
        engine,
        cookie_name=settings.session_cookie_name,
        max_age=settings.session_max_age_seconds,
        secure=settings.session_cookie_secure,
    )
    return AuthService(
        share_code_registry,
        notifier,
        store,
        email_code_ttl=timedelta(seconds=settings.email_code_ttl_seconds),
        share_code_ttl=timedelta(seconds=settings.share_code_ttl_seconds),
        session_max_age=timedelta(seconds=settings.session_max_age_seconds),
        share_code_session_max_age=timedelta(seconds=settings.share_code_session_max_age_seconds),
    )


def get_client_descriptor(request: Request) -> ClientDescriptor:
    """Describe the requesting client from its User-Agent."""
    return parse_user_agent(request.headers.get("User-Agent"))


def require_identity(
    request: Request,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> Identity:
    """Guard for protected routes. Raises Unauthorized."""
    identity = auth.require_identity(request)
    request.state.subject = identity.principal
    return identity
