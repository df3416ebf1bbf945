"""Business logic services."""

from .critic import CriticService
from .executor import PhaseExecutor
from .regeneration import MAX_FEEDBACK_VIOLATIONS, RegenerationOutcome, generate_with_validation, regenerate
from .validator import DraftValidator

__all__ = [
    "CriticService",
    "PhaseExecutor",
    "MAX_FEEDBACK_VIOLATIONS",
    "RegenerationOutcome",
    "generate_with_validation",
    "regenerate",
    "DraftValidator",
]
