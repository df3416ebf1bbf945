"""Pipeline events - the progress channel between engine and caller."""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EventType(Enum):
    PHASE_START = "phase_start"
    THINKING = "thinking"
    ARTIFACT = "artifact"
    VALIDATION = "validation"
    COMPLETE = "complete"
    ERROR = "error"


TERMINAL_EVENTS = (EventType.COMPLETE, EventType.ERROR)


@dataclass(frozen=True)
class PipelineEvent:
    type: EventType
    phase: int | None = None
    name: str | None = None
    message: str | None = None
    preview: str | None = None
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def is_terminal(self) -> bool:
        return self.type in TERMINAL_EVENTS

    def to_dict(self) -> dict:
        out: dict[str, Any] = {"type": self.type.value}
        for key in ("phase", "name", "message", "preview"):
            value = getattr(self, key)
            if value is not None:
                out[key] = value
        if self.data:
            out.update(self.data)
        return out

    def to_sse(self) -> str:
        """Render as one server-sent-events frame."""
        return f"data: {json.dumps(self.to_dict(), ensure_ascii=False, default=str)}\n\n"
