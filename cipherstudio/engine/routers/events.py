"""State-change event stream (server-sent events).

Each client gets its own queue subscribed to every event on the bus.  The
stream ends when the client disconnects or the server shuts down.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

from fastapi import APIRouter, Request
from sse_starlette.sse import EventSourceResponse

from cipherstudio.engine.deps import StudioDep
from cipherstudio.engine.events import EventBus
from cipherstudio.engine.models.events import StateEvent

router = APIRouter(prefix="/events", tags=["events"])

_POLL_INTERVAL = 1.0


async def stream_events(bus: EventBus, request: Request) -> AsyncIterator[dict[str, str]]:
    queue: asyncio.Queue[StateEvent] = asyncio.Queue()
    unsubscribe = bus.subscribe(None, queue.put_nowait)
    try:
        while True:
            try:
                event = await asyncio.wait_for(queue.get(), timeout=_POLL_INTERVAL)
            except TimeoutError:
                if await request.is_disconnected():
                    break
                continue
            yield {"event": event.event_type.value, "data": event.model_dump_json()}
    finally:
        unsubscribe()


@router.get("/stream")
async def event_stream(request: Request, studio: StudioDep) -> EventSourceResponse:
    """Stream every workspace, status and channel event as SSE."""
    return EventSourceResponse(stream_events(studio.bus, request))
