"""Shared fixtures for engine tests.

Collaborators are in-memory fakes; every timer runs on a ``VirtualClock``
so tests move time explicitly with ``await clock.advance(seconds)``.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from cipherstudio.engine.app import app
from cipherstudio.engine.clock import VirtualClock
from cipherstudio.engine.events import EventBus
from cipherstudio.engine.execution.orchestrator import AsyncToolOrchestrator
from cipherstudio.engine.managers.persistence import PersistenceGateway
from cipherstudio.engine.managers.session import SessionBootstrapper
from cipherstudio.engine.managers.workspace import WorkspaceController
from cipherstudio.engine.models.events import StateEvent
from cipherstudio.engine.services.identity import IdentityError, UnavailableIdentityService
from cipherstudio.engine.services.inference import InferenceError
from cipherstudio.engine.settings import CipherSettings
from cipherstudio.engine.store.base import DocumentKey
from cipherstudio.engine.store.memory import MemoryDocumentStore
from cipherstudio.engine.studio import Studio

NAMESPACE = "test-app"


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeIdentityService:
    """Identity service whose outcomes are set per test.

    ``None`` for a result makes that sign-in method fail.
    """

    def __init__(self, *, token_user: str | None = "token-user", anonymous_user: str | None = "anon-user") -> None:
        self.token_user = token_user
        self.anonymous_user = anonymous_user
        self.calls: list[str] = []

    @property
    def available(self) -> bool:
        return True

    async def sign_in_with_token(self, token: str) -> str:
        self.calls.append("token")
        await asyncio.sleep(0)
        if self.token_user is None:
            raise IdentityError("bad token")
        return self.token_user

    async def sign_in_anonymously(self) -> str:
        self.calls.append("anonymous")
        await asyncio.sleep(0)
        if self.anonymous_user is None:
            raise IdentityError("anonymous sign-in disabled")
        return self.anonymous_user


class ScriptedInference:
    """Inference service replaying scripted outcomes.

    Each entry of ``script`` is either a response text or an exception to
    raise.  When the script runs out, ``default`` is returned.  Setting
    ``always_fail`` makes every call raise ``InferenceError``; setting
    ``gate`` holds every call until the event is set.
    """

    def __init__(self, *script: str | Exception, default: str = "ok") -> None:
        self.script = list(script)
        self.default = default
        self.calls: list[tuple[str, str]] = []
        self.gate: asyncio.Event | None = None
        self.always_fail = False

    @property
    def available(self) -> bool:
        return True

    async def complete(self, prompt: str, system: str) -> str:
        self.calls.append((prompt, system))
        if self.gate is not None:
            await self.gate.wait()
        if self.always_fail:
            raise InferenceError("API returned status 500")
        if not self.script:
            return self.default
        outcome = self.script.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FailingStore(MemoryDocumentStore):
    """Memory store whose operations can be switched to fail."""

    def __init__(self) -> None:
        super().__init__()
        self.fail = False

    async def write(self, key: DocumentKey, data: dict[str, Any], *, merge: bool = True) -> None:
        if self.fail:
            raise OSError("disk full")
        await super().write(key, data, merge=merge)

    async def read(self, key: DocumentKey) -> dict[str, Any] | None:
        if self.fail:
            raise OSError("connection reset")
        return await super().read(key)

    async def delete(self, key: DocumentKey) -> None:
        if self.fail:
            raise OSError("permission denied")
        await super().delete(key)


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> VirtualClock:
    return VirtualClock()


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def events(bus: EventBus) -> list[StateEvent]:
    """Every event published on ``bus``, in order."""
    recorded: list[StateEvent] = []
    bus.subscribe(None, recorded.append)
    return recorded


@pytest.fixture
def store() -> FailingStore:
    return FailingStore()


@pytest.fixture
def session() -> SessionBootstrapper:
    """Bootstrapper without an identity service (local identity)."""
    return SessionBootstrapper(UnavailableIdentityService())


@pytest.fixture
def persistence(store: FailingStore, bus: EventBus) -> PersistenceGateway:
    return PersistenceGateway(store, namespace=NAMESPACE, bus=bus)


@pytest.fixture
async def controller(
    session: SessionBootstrapper,
    persistence: PersistenceGateway,
    bus: EventBus,
    clock: VirtualClock,
) -> AsyncIterator[WorkspaceController]:
    """Started controller on Python (a simulated, editable language)."""
    ctrl = WorkspaceController(
        session=session,
        persistence=persistence,
        bus=bus,
        clock=clock,
        language_id="Python",
    )
    await ctrl.start()
    yield ctrl
    await ctrl.aclose()


@pytest.fixture
def inference() -> ScriptedInference:
    return ScriptedInference()


@pytest.fixture
async def orchestrator(
    inference: ScriptedInference,
    bus: EventBus,
    clock: VirtualClock,
) -> AsyncIterator[AsyncToolOrchestrator]:
    orch = AsyncToolOrchestrator(inference, bus=bus, clock=clock)
    yield orch
    await orch.aclose()


@pytest.fixture
def identity() -> FakeIdentityService:
    return FakeIdentityService()


# ---------------------------------------------------------------------------
# Wired engine / HTTP
# ---------------------------------------------------------------------------


@pytest.fixture
async def studio(
    store: FailingStore,
    identity: FakeIdentityService,
    inference: ScriptedInference,
    clock: VirtualClock,
) -> AsyncIterator[Studio]:
    """Started Studio on Python, signed in with a bootstrap token."""
    settings = CipherSettings(default_language="Python", initial_auth_token="bootstrap", app_namespace=NAMESPACE)
    instance = Studio.build(settings, store=store, identity=identity, inference=inference, clock=clock)
    await instance.start()
    yield instance
    await instance.aclose()


@pytest.fixture
async def client(studio: Studio) -> AsyncIterator[AsyncClient]:
    """Async HTTP client wired to the app around ``studio``.

    The app lifespan does NOT run under ``ASGITransport``, so the studio is
    placed on ``app.state`` directly.
    """
    app.state.studio = studio
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.state.studio = None
