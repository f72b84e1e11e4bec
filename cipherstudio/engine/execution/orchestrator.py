"""Asynchronous tool orchestration over the inference service.

Five independent channels share one retrying call path:

- **explain / review / generate / convert** -- one remote call per
  invocation, awaited by the caller.
- **simulate_execution** -- driven by ``on_source_changed``; debounced, tries
  the local heuristic first, and always resolves to displayable text.

Each channel carries a generation counter.  A request records the counter at
dispatch; when its result arrives after a newer request bumped the counter,
the result is dropped.  Superseded network calls are never aborted, only
ignored.

Retry policy: up to ``retry_attempts`` attempts; after failed attempt *n*
the orchestrator sleeps ``retry_backoff_base ** n`` seconds on the clock.
Exhaustion raises ``ToolCallExhaustedError`` carrying the last error.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from loguru import logger

from cipherstudio.engine.execution.prompt import Instructions, channel_title, render_instructions
from cipherstudio.engine.execution.simulation import (
    LOCAL_PREVIEW_PLACEHOLDER,
    simulate_locally,
    too_short_to_simulate,
)
from cipherstudio.engine.models.enums import ChannelStatus, EventType, ToolKind
from cipherstudio.engine.models.tools import ChannelState, ToolRequest
from cipherstudio.engine.services.inference import InferenceUnavailableError
from cipherstudio.engine.templates import LANGUAGE_TEMPLATES, conversion_targets

if TYPE_CHECKING:
    from cipherstudio.engine.clock import Clock, TimerHandle
    from cipherstudio.engine.events import EventBus
    from cipherstudio.engine.services.inference import InferenceService


class ToolCallExhaustedError(RuntimeError):
    """Raised when every attempt of a remote tool call failed."""


class AsyncToolOrchestrator:
    """Owns the tool channels, their generations and the simulation debounce."""

    def __init__(
        self,
        inference: InferenceService,
        *,
        bus: EventBus,
        clock: Clock,
        retry_attempts: int = 3,
        retry_backoff_base: float = 2.0,
        debounce_delay: float = 1.5,
        close_timeout: float = 1.0,
    ) -> None:
        self._inference = inference
        self._bus = bus
        self._clock = clock
        self._retry_attempts = max(retry_attempts, 1)
        self._retry_backoff_base = retry_backoff_base
        self._debounce_delay = debounce_delay
        self._close_timeout = close_timeout

        self._channels: dict[ToolKind, ChannelState] = {kind: ChannelState(kind=kind) for kind in ToolKind}
        self._debounce_timer: TimerHandle | None = None
        self._last_simulated: tuple[str, str] | None = None
        self._tasks: set[asyncio.Task[Any]] = set()
        self._closed = False

    # -- Query -----------------------------------------------------------------

    def channel(self, kind: ToolKind) -> ChannelState:
        return self._channels[kind].model_copy()

    def channels(self) -> dict[ToolKind, ChannelState]:
        return {kind: state.model_copy() for kind, state in self._channels.items()}

    @property
    def debounce_pending(self) -> bool:
        return self._debounce_timer is not None and not self._debounce_timer.cancelled()

    # -- Click-driven channels -------------------------------------------------

    async def explain(self, *, language: str, path: str, code: str) -> ChannelState:
        request = ToolRequest(kind=ToolKind.EXPLAIN, source_path=path, source_language=language, code=code)
        return await self._run_channel(request)

    async def review(self, *, language: str, path: str, code: str) -> ChannelState:
        request = ToolRequest(kind=ToolKind.REVIEW, source_path=path, source_language=language, code=code)
        return await self._run_channel(request)

    async def generate(self, *, language: str, path: str, description: str) -> ChannelState:
        if not description.strip():
            raise ValueError("A description is required to generate code")
        request = ToolRequest(
            kind=ToolKind.GENERATE,
            source_path=path,
            source_language=language,
            prompt=description,
        )
        return await self._run_channel(request)

    async def convert(self, *, language: str, path: str, code: str, target: str) -> ChannelState:
        """Convert ``code`` to ``target``.

        Raises:
            ValueError: If ``target`` is the source language or not a
                conversion target.  Channel state is left untouched.
        """
        if target == language or target not in conversion_targets(language):
            msg = f"Cannot convert {language} code to {target}"
            raise ValueError(msg)
        request = ToolRequest(
            kind=ToolKind.CONVERT,
            source_path=path,
            source_language=language,
            code=code,
            target_language=target,
        )
        return await self._run_channel(request)

    async def _run_channel(self, request: ToolRequest) -> ChannelState:
        kind = request.kind
        generation = self._bump(kind)
        request.generation = generation
        self._update(
            kind,
            status=ChannelStatus.PENDING,
            text=None,
            error=None,
            title=channel_title(kind, target=request.target_language),
        )

        try:
            text = await self._call_with_retry(self._instructions(request))
        except ToolCallExhaustedError as exc:
            if self._is_current(kind, generation):
                logger.warning("Tool channel {} failed: {}", kind, exc)
                self._update(kind, status=ChannelStatus.FAILED, error=str(exc))
            return self.channel(kind)

        if self._is_current(kind, generation):
            self._update(kind, status=ChannelStatus.SUCCEEDED, text=text)
        else:
            logger.debug("Discarding stale {} result (generation {})", kind, generation)
        return self.channel(kind)

    # -- Execution simulation --------------------------------------------------

    def on_source_changed(self, language_id: str, path: str, content: str) -> None:
        """Restart the simulation debounce for the active file."""
        if self._closed:
            return
        kind = ToolKind.SIMULATE_EXECUTION
        template = LANGUAGE_TEMPLATES.get(language_id)

        if template is not None and template.live:
            self._cancel_debounce()
            self._bump(kind)
            self._last_simulated = None
            self._update(kind, status=ChannelStatus.IDLE, text=None, error=None, title=None)
            return

        if (language_id, content) == self._last_simulated and not self.debounce_pending:
            return

        self._cancel_debounce()
        generation = self._bump(kind)
        self._debounce_timer = self._clock.call_later(
            self._debounce_delay,
            self._fire_simulation,
            ToolRequest(kind=kind, source_path=path, source_language=language_id, code=content, generation=generation),
        )

    def _fire_simulation(self, request: ToolRequest) -> None:
        self._debounce_timer = None
        if self._closed or not self._is_current(request.kind, request.generation):
            return
        self._last_simulated = (request.source_language, request.code)
        self._spawn(self._simulate(request))

    async def _simulate(self, request: ToolRequest) -> None:
        kind, generation = request.kind, request.generation

        if too_short_to_simulate(request.code):
            self._resolve_simulation(generation, "")
            return

        local = simulate_locally(request.code, request.source_language)
        if local is not None:
            logger.debug("Local simulation resolved {} without a remote call", request.source_path)
            self._resolve_simulation(generation, local)
            return

        if self._is_current(kind, generation):
            self._update(kind, status=ChannelStatus.PENDING, text=None, error=None, title=channel_title(kind))
        try:
            text = await self._call_with_retry(self._instructions(request))
        except ToolCallExhaustedError as exc:
            logger.warning("Remote simulation failed, using local preview: {}", exc)
            text = LOCAL_PREVIEW_PLACEHOLDER
        self._resolve_simulation(generation, text)

    def _resolve_simulation(self, generation: int, text: str) -> None:
        kind = ToolKind.SIMULATE_EXECUTION
        if self._closed or not self._is_current(kind, generation):
            logger.debug("Discarding stale simulation result (generation {})", generation)
            return
        self._update(kind, status=ChannelStatus.SUCCEEDED, text=text, error=None, title=channel_title(kind))

    def _cancel_debounce(self) -> None:
        if self._debounce_timer is not None:
            self._debounce_timer.cancel()
            self._debounce_timer = None

    # -- Remote call -----------------------------------------------------------

    async def _call_with_retry(self, instructions: Instructions) -> str:
        if not self._inference.available:
            raise ToolCallExhaustedError("Inference service not configured")

        last_error: Exception | None = None
        for attempt in range(1, self._retry_attempts + 1):
            try:
                return await self._inference.complete(instructions.prompt, instructions.system)
            except InferenceUnavailableError as exc:
                raise ToolCallExhaustedError(str(exc)) from exc
            except Exception as exc:
                last_error = exc
                if attempt < self._retry_attempts:
                    delay = self._retry_backoff_base**attempt
                    logger.warning("Attempt {} failed. Retrying in {}s: {}", attempt, delay, exc)
                    await self._clock.sleep(delay)

        msg = f"Failed to get a response after {self._retry_attempts} attempts. Error: {last_error}"
        raise ToolCallExhaustedError(msg) from last_error

    @staticmethod
    def _instructions(request: ToolRequest) -> Instructions:
        return render_instructions(
            request.kind,
            language=request.source_language,
            path=request.source_path,
            code=request.code,
            target=request.target_language,
            description=request.prompt,
        )

    # -- Lifecycle -------------------------------------------------------------

    async def aclose(self) -> None:
        """Cancel the debounce timer; give in-flight simulations a moment, then drop them."""
        self._closed = True
        self._cancel_debounce()
        if not self._tasks:
            return
        _, pending = await asyncio.wait(set(self._tasks), timeout=self._close_timeout)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    # -- Internal --------------------------------------------------------------

    def _bump(self, kind: ToolKind) -> int:
        state = self._channels[kind]
        state.generation += 1
        return state.generation

    def _is_current(self, kind: ToolKind, generation: int) -> bool:
        return self._channels[kind].generation == generation

    def _update(self, kind: ToolKind, **changes: Any) -> None:
        state = self._channels[kind]
        for field, value in changes.items():
            setattr(state, field, value)
        self._bus.publish(EventType.CHANNEL_CHANGED, **state.model_dump(mode="json"))

    def _spawn(self, coro: Any) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
