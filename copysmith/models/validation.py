"""Validation result models."""

from dataclasses import dataclass, field
from enum import Enum


class ViolationType(Enum):
    FORBIDDEN_WORD = "forbidden_word"
    FORBIDDEN_PATTERN = "forbidden_pattern"
    SENTENCE_TOO_LONG = "sentence_too_long"
    ADJECTIVE_STACKING = "adjective_stacking"
    PARAGRAPH_OPENER = "paragraph_opener"
    MISSING_SPECIFICITY = "missing_specificity"
    BEAT_FIRST_WORD = "beat_first_word"
    BEAT_MISSING_ELEMENT = "beat_missing_element"
    BEAT_FORBIDDEN_TERM = "beat_forbidden_term"
    LENGTH_EXCEEDED = "length_exceeded"


class Severity(Enum):
    HARD = "hard"
    SOFT = "soft"


@dataclass(frozen=True)
class Violation:
    """A single rule violation found in one generation attempt."""
    type: ViolationType
    details: str
    location: str
    severity: Severity = Severity.HARD

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "details": self.details,
            "location": self.location,
            "severity": self.severity.value,
        }


@dataclass(frozen=True)
class ValidationPolicy:
    """Which rule categories block validity.

    Reference policy: everything is hard. Sentence length, adjective
    stacking and specificity can be relaxed to soft.
    """
    sentence_length_hard: bool = True
    adjective_stacking_hard: bool = True
    specificity_hard: bool = True
    min_window_chars: int = 50    # windows shorter than this skip the specificity check


@dataclass
class ValidationResult:
    is_valid: bool
    score: float                  # fraction of checks passed, 0..1
    violations: list[Violation] = field(default_factory=list)
    checks_run: int = 0
    checks_passed: int = 0

    @property
    def hard_violations(self) -> list[Violation]:
        return [v for v in self.violations if v.severity == Severity.HARD]
