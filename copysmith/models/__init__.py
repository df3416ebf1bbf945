"""Data models."""

from .artifacts import ARTIFACT_SCHEMAS, Artifact, BeatSheet, DraftV0, FinalPackage, parse_artifact
from .critique import CritiqueResult, RubricCriterion
from .events import EventType, PipelineEvent
from .run import PipelineResult, RunOptions, RunState, RunStatus
from .task_spec import TaskSpec
from .validation import ValidationPolicy, ValidationResult, Violation, ViolationType

__all__ = [
    "ARTIFACT_SCHEMAS",
    "Artifact",
    "BeatSheet",
    "DraftV0",
    "FinalPackage",
    "parse_artifact",
    "CritiqueResult",
    "RubricCriterion",
    "EventType",
    "PipelineEvent",
    "PipelineResult",
    "RunOptions",
    "RunState",
    "RunStatus",
    "TaskSpec",
    "ValidationPolicy",
    "ValidationResult",
    "Violation",
    "ViolationType",
]
