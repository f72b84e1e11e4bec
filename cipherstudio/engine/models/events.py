"""State-change event envelope."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from cipherstudio.engine.models.enums import EventType


class StateEvent(BaseModel):
    """Event published on the bus and relayed over SSE."""

    event_type: EventType
    timestamp: datetime = Field(default_factory=datetime.now)
    payload: dict[str, Any] = Field(default_factory=dict)
