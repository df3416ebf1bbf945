"""Run state and results for one pipeline run."""

import threading
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel

from .critique import CritiqueResult
from .events import PipelineEvent
from .validation import Violation


class RunStatus(Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = (RunStatus.COMPLETED, RunStatus.FAILED)


@dataclass
class RunState:
    """Mutable state owned by exactly one engine run."""
    run_id: str
    status: RunStatus = RunStatus.PENDING
    current_phase: int = 0
    artifacts: dict[str, BaseModel] = field(default_factory=dict)  # insertion order = phase order
    error_message: str | None = None
    failed_phase: int | None = None
    best_effort: bool = False
    unresolved_violations: list[Violation] = field(default_factory=list)

    def start(self) -> None:
        if self.status != RunStatus.PENDING:
            raise ValueError(f"Run {self.run_id} cannot start from {self.status.value}")
        self.status = RunStatus.RUNNING

    def complete(self) -> None:
        if self.status != RunStatus.RUNNING:
            raise ValueError(f"Run {self.run_id} cannot complete from {self.status.value}")
        self.status = RunStatus.COMPLETED

    def fail(self, message: str, phase: int | None = None) -> None:
        if self.status in TERMINAL_STATUSES:
            raise ValueError(f"Run {self.run_id} already {self.status.value}")
        self.status = RunStatus.FAILED
        self.error_message = message
        self.failed_phase = phase

    def snapshot(self) -> dict:
        """JSON-ready copy for persistence."""
        return {
            "run_id": self.run_id,
            "status": self.status.value,
            "current_phase": self.current_phase,
            "artifacts": {k: v.model_dump(mode="json") for k, v in self.artifacts.items()},
            "error_message": self.error_message,
            "failed_phase": self.failed_phase,
            "best_effort": self.best_effort,
            "unresolved_violations": [v.to_dict() for v in self.unresolved_violations],
        }


@dataclass
class RunOptions:
    strict: bool = False
    cancel_event: threading.Event | None = None
    project_id: str | None = None
    subtype: str | None = None      # critic rubric, e.g. "abandoned_cart"

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()


@dataclass
class PipelineResult:
    """What a buffered run returns to the caller."""
    success: bool
    run_id: str
    artifacts: dict[str, BaseModel] = field(default_factory=dict)
    final_artifact: BaseModel | None = None
    error: str | None = None
    failed_phase: int | None = None
    best_effort: bool = False
    unresolved_violations: list[Violation] = field(default_factory=list)
    critique: CritiqueResult | None = None
    events: list[PipelineEvent] = field(default_factory=list)
