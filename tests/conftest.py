"""Shared fixtures: controllable clock, recording notifier, in-memory sessions."""

import copy
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from gcopy_auth.errors import DeliveryError
from gcopy_auth.services.auth import AuthService
from gcopy_auth.services.session_store import SessionHandle, new_session_token
from gcopy_auth.services.share_codes import InMemoryShareCodeRegistry


class FakeClock:
    """Wall clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingNotifier:
    """Notifier that keeps sent messages, or fails when asked to."""

    def __init__(self):
        self.sent: list[tuple[str, str, str]] = []
        self.fail = False

    def send(self, to_address: str, subject: str, html_body: str) -> None:
        if self.fail:
            raise DeliveryError("connection refused")
        self.sent.append((to_address, subject, html_body))


class Client:
    """A browser: carries its session token between requests."""

    def __init__(self):
        self.token: Optional[str] = None
        self.max_age: Optional[int] = None


class MemorySessionStore:
    """SessionStore keeping values in a dict; request and response are a Client."""

    def __init__(self):
        self.records: dict[str, dict] = {}
        self.saves = 0

    def get(self, client: Client) -> SessionHandle:
        if client.token and client.token in self.records:
            return SessionHandle(
                token=client.token,
                values=copy.deepcopy(self.records[client.token]),
                max_age=client.max_age or 0,
            )
        return SessionHandle(token=new_session_token(), max_age=3600, is_new=True)

    def save(self, handle: SessionHandle, client: Client) -> None:
        self.records[handle.token] = copy.deepcopy(handle.values)
        self.saves += 1
        client.token = handle.token
        client.max_age = handle.max_age

    def values(self, client: Client) -> dict:
        return self.records.get(client.token, {})


@pytest.fixture(name="clock")
def clock_fixture():
    return FakeClock(datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture(name="notifier")
def notifier_fixture():
    return RecordingNotifier()


@pytest.fixture(name="store")
def store_fixture():
    return MemorySessionStore()


@pytest.fixture(name="registry")
def registry_fixture():
    return InMemoryShareCodeRegistry()


@pytest.fixture(name="codes")
def codes_fixture():
    """Codes handed out by the generator, in order."""
    return ["654321", "111111", "222222", "333333"]


@pytest.fixture(name="auth")
def auth_fixture(registry, notifier, store, clock, codes):
    issued = iter(codes)
    return AuthService(
        registry,
        notifier,
        store,
        clock=clock,
        code_generator=lambda: next(issued),
    )
