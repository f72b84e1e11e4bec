"""Session bootstrap -- establishes the owner identity.

Layered fallback, each step falling through to the next on failure:

1. Token sign-in, when a bootstrap token is configured.
2. Anonymous sign-in against the identity service.
3. A random local identity (``uuid4``), also used when no identity service
   is configured at all.

Bootstrap always ends ``ready``.  There are no retries inside a step; the
fallback chain is the retry strategy.  The transition runs once per process
(concurrent callers share the in-flight attempt) unless ``reset`` is called.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import TYPE_CHECKING

from loguru import logger

from cipherstudio.engine.models.enums import IdentityMethod, SessionPhase
from cipherstudio.engine.models.project import SessionIdentity

if TYPE_CHECKING:
    from cipherstudio.engine.services.identity import IdentityService


class SessionBootstrapper:
    def __init__(self, identity_service: IdentityService, *, bootstrap_token: str | None = None) -> None:
        self._service = identity_service
        self._token = bootstrap_token
        self._phase = SessionPhase.UNAUTHENTICATED
        self._identity: SessionIdentity | None = None
        self._inflight: asyncio.Task[SessionIdentity] | None = None
        self._attempt = 0

    # -- Query -----------------------------------------------------------------

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def identity(self) -> SessionIdentity | None:
        return self._identity

    @property
    def ready(self) -> bool:
        return self._phase == SessionPhase.READY

    @property
    def owner_id(self) -> str | None:
        return self._identity.owner_id if self._identity else None

    # -- Lifecycle -------------------------------------------------------------

    async def bootstrap(self) -> SessionIdentity:
        """Run the fallback chain once; later calls return the cached identity."""
        if self._identity is not None:
            return self._identity
        if self._inflight is None:
            self._phase = SessionPhase.AUTHENTICATING
            self._inflight = asyncio.create_task(self._run(self._attempt))
        return await asyncio.shield(self._inflight)

    def reset(self) -> None:
        """Forget the identity so the next ``bootstrap`` starts over.

        An attempt still in flight finishes for its own callers but no longer
        updates this bootstrapper.
        """
        self._attempt += 1
        self._identity = None
        self._inflight = None
        self._phase = SessionPhase.UNAUTHENTICATED

    async def _run(self, attempt: int) -> SessionIdentity:
        identity = await self._authenticate()
        if attempt != self._attempt:
            logger.debug("Discarding identity from a reset bootstrap attempt: owner={}", identity.owner_id)
            return identity
        self._identity = identity
        self._phase = SessionPhase.READY
        logger.info("Session ready: owner={} (method={})", identity.owner_id, identity.method)
        return identity

    async def _authenticate(self) -> SessionIdentity:
        if not self._service.available:
            logger.warning("No identity service configured, using local identity")
            return _local_identity()

        if self._token:
            try:
                owner_id = await self._service.sign_in_with_token(self._token)
            except Exception as exc:
                logger.warning("Token sign-in failed, trying anonymous sign-in: {}", exc)
            else:
                return SessionIdentity(owner_id=owner_id, method=IdentityMethod.TOKEN)

        try:
            owner_id = await self._service.sign_in_anonymously()
        except Exception as exc:
            logger.warning("Anonymous sign-in failed, using local identity: {}", exc)
            return _local_identity()
        return SessionIdentity(owner_id=owner_id, method=IdentityMethod.ANONYMOUS)


def _local_identity() -> SessionIdentity:
    return SessionIdentity(owner_id=str(uuid.uuid4()), method=IdentityMethod.LOCAL)
