"""Studio -- composition root of the engine.

Builds the collaborators from ``CipherSettings`` and wires the components:

- ``source_changed`` events from the WorkspaceController feed the
  orchestrator's execution simulation.
- Click-driven tool channels run against the workspace's active file.

The app lifespan and tests construct one ``Studio`` per process.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from loguru import logger

from cipherstudio.engine.clock import LoopClock
from cipherstudio.engine.events import EventBus
from cipherstudio.engine.execution.orchestrator import AsyncToolOrchestrator
from cipherstudio.engine.managers.persistence import PersistenceGateway
from cipherstudio.engine.managers.session import SessionBootstrapper
from cipherstudio.engine.managers.workspace import WorkspaceController
from cipherstudio.engine.models.enums import EventType, ToolKind
from cipherstudio.engine.services.identity import FirebaseIdentityService, UnavailableIdentityService
from cipherstudio.engine.services.inference import GeminiInferenceService, UnavailableInferenceService
from cipherstudio.engine.store.base import UnavailableDocumentStore
from cipherstudio.engine.store.local import LocalDocumentStore
from cipherstudio.engine.store.memory import MemoryDocumentStore
from cipherstudio.engine.store.s3 import S3DocumentStore

if TYPE_CHECKING:
    from collections.abc import Callable

    from cipherstudio.engine.clock import Clock
    from cipherstudio.engine.models.events import StateEvent
    from cipherstudio.engine.models.project import SessionIdentity
    from cipherstudio.engine.models.tools import ChannelState
    from cipherstudio.engine.services.identity import IdentityService
    from cipherstudio.engine.services.inference import InferenceService
    from cipherstudio.engine.settings import CipherSettings
    from cipherstudio.engine.store.base import DocumentStore


# -- Collaborator factories ----------------------------------------------------


def create_document_store(settings: CipherSettings) -> DocumentStore:
    """Create the document store backend based on configuration."""
    if settings.document_store == "none":
        return UnavailableDocumentStore()
    if settings.document_store == "memory":
        return MemoryDocumentStore()
    if settings.document_store == "s3":
        if not (settings.s3_bucket and settings.s3_endpoint and settings.s3_access_key and settings.s3_secret_key):
            logger.warning("S3 document store selected but CIPHER_S3_* is incomplete -- running local-only")
            return UnavailableDocumentStore()
        return S3DocumentStore(
            bucket=settings.s3_bucket,
            endpoint_url=settings.s3_endpoint,
            access_key=settings.s3_access_key,
            secret_key=settings.s3_secret_key.get_secret_value(),
            prefix=settings.data_prefix,
            region=settings.s3_region,
            path_style=settings.s3_path_style,
        )
    return LocalDocumentStore(settings.data_root, prefix=settings.data_prefix)


def create_identity_service(settings: CipherSettings, client: httpx.AsyncClient) -> IdentityService:
    if settings.firebase_api_key is None:
        return UnavailableIdentityService()
    return FirebaseIdentityService(
        settings.firebase_api_key.get_secret_value(),
        client=client,
        base_url=settings.identity_base_url,
    )


def create_inference_service(settings: CipherSettings, client: httpx.AsyncClient) -> InferenceService:
    if settings.gemini_api_key is None:
        return UnavailableInferenceService()
    return GeminiInferenceService(
        settings.gemini_api_key.get_secret_value(),
        client=client,
        model=settings.gemini_model,
        base_url=settings.gemini_base_url,
        timeout=settings.inference_timeout,
    )


# -- Studio --------------------------------------------------------------------


class Studio:
    """One fully wired engine instance."""

    def __init__(
        self,
        *,
        bus: EventBus,
        session: SessionBootstrapper,
        persistence: PersistenceGateway,
        controller: WorkspaceController,
        orchestrator: AsyncToolOrchestrator,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.bus = bus
        self.session = session
        self.persistence = persistence
        self.controller = controller
        self.orchestrator = orchestrator
        self._http_client = http_client
        self._unsubscribe: Callable[[], None] | None = bus.subscribe(EventType.SOURCE_CHANGED, self._on_source_changed)

    @classmethod
    def build(
        cls,
        settings: CipherSettings,
        *,
        store: DocumentStore,
        identity: IdentityService,
        inference: InferenceService,
        clock: Clock | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> Studio:
        """Wire the components around explicit collaborators."""
        clock = clock or LoopClock()
        bus = EventBus()
        token = settings.initial_auth_token.get_secret_value() if settings.initial_auth_token else None
        session = SessionBootstrapper(identity, bootstrap_token=token)
        persistence = PersistenceGateway(store, namespace=settings.app_namespace, bus=bus)
        controller = WorkspaceController(
            session=session,
            persistence=persistence,
            bus=bus,
            clock=clock,
            language_id=settings.default_language,
            autosave_enabled=settings.autosave_enabled,
            autosave_interval=settings.autosave_interval,
            status_clear_delay=settings.status_clear_delay,
        )
        orchestrator = AsyncToolOrchestrator(
            inference,
            bus=bus,
            clock=clock,
            retry_attempts=settings.retry_attempts,
            retry_backoff_base=settings.retry_backoff_base,
            debounce_delay=settings.debounce_delay,
        )
        return cls(
            bus=bus,
            session=session,
            persistence=persistence,
            controller=controller,
            orchestrator=orchestrator,
            http_client=http_client,
        )

    @classmethod
    def from_settings(cls, settings: CipherSettings, *, clock: Clock | None = None) -> Studio:
        """Build every collaborator from configuration (shared HTTP client)."""
        client = httpx.AsyncClient(timeout=settings.inference_timeout)
        studio = cls.build(
            settings,
            store=create_document_store(settings),
            identity=create_identity_service(settings, client),
            inference=create_inference_service(settings, client),
            clock=clock,
            http_client=client,
        )
        logger.info(
            "Studio configured (store={}, identity={}, inference={})",
            settings.document_store,
            "firebase" if settings.firebase_api_key else "local",
            settings.gemini_model if settings.gemini_api_key else "unavailable",
        )
        return studio

    # -- Lifecycle -------------------------------------------------------------

    async def start(self) -> SessionIdentity:
        return await self.controller.start()

    async def aclose(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        await self.orchestrator.aclose()
        await self.controller.aclose()
        if self._http_client is not None:
            await self._http_client.aclose()

    # -- Tools on the active file ------------------------------------------------

    async def run_tool(
        self,
        kind: ToolKind,
        *,
        target: str | None = None,
        description: str | None = None,
    ) -> ChannelState:
        """Run a click-driven channel against the active file.

        Raises:
            ValueError: For ``simulate_execution`` (debounce-driven only), a
                missing conversion target, or an empty generate description.
        """
        ws = self.controller.workspace
        language, path = ws.language_id, ws.selected_path
        code = self.controller.active_file_content()

        if kind == ToolKind.EXPLAIN:
            return await self.orchestrator.explain(language=language, path=path, code=code)
        if kind == ToolKind.REVIEW:
            return await self.orchestrator.review(language=language, path=path, code=code)
        if kind == ToolKind.GENERATE:
            return await self.orchestrator.generate(language=language, path=path, description=description or "")
        if kind == ToolKind.CONVERT:
            if not target:
                raise ValueError("A target language is required to convert code")
            return await self.orchestrator.convert(language=language, path=path, code=code, target=target)
        msg = f"Tool {kind} cannot be invoked directly"
        raise ValueError(msg)

    def _on_source_changed(self, event: StateEvent) -> None:
        payload = event.payload
        self.orchestrator.on_source_changed(payload["language_id"], payload["path"], payload["content"])
