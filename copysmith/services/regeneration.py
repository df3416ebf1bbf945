"""Regeneration loop - bounded retry with violation feedback."""

import logging
from collections.abc import Callable, Generator
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from ..models.validation import ValidationResult, Violation

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Corrective context never carries more than this many violations
MAX_FEEDBACK_VIOLATIONS = 3


@dataclass
class Attempt(Generic[T]):
    number: int
    output: T
    validation: ValidationResult
    feedback: str | None = None


@dataclass
class RegenerationOutcome(Generic[T]):
    """Chosen attempt plus the full attempt history."""
    output: T
    validation: ValidationResult
    attempts: list[Attempt[T]] = field(default_factory=list)
    best_effort: bool = False

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)

    @property
    def unresolved_violations(self) -> list[Violation]:
        return list(self.validation.violations) if self.best_effort else []


def format_violations_for_prompt(
    violations: list[Violation],
    limit: int = MAX_FEEDBACK_VIOLATIONS,
) -> str:
    """Serialize the first `limit` violations, in detection order, as a rewrite brief."""
    if not violations:
        return ""

    lines = [f"- {v.type.value} ({v.location}): {v.details}" for v in violations[:limit]]
    omitted = len(violations) - limit
    if omitted > 0:
        lines.append(f"- ...and {omitted} more")

    return (
        "YOUR PREVIOUS ATTEMPT VIOLATED THESE RULES:\n\n"
        + "\n".join(lines)
        + "\n\nREWRITE WITHOUT THESE VIOLATIONS. Do not just patch them - rewrite the sentences properly."
    )


def regenerate(
    phase_fn: Callable[[str | None], T],
    validator_fn: Callable[[T], ValidationResult],
    max_attempts: int,
    label: str = "",
) -> Generator[Attempt[T], None, RegenerationOutcome[T]]:
    """
    Generate until the output validates or attempts run out.

    Each attempt is yielded as soon as it is validated; the generator's
    return value is the RegenerationOutcome.

    Args:
        phase_fn: Called with None on attempt 1, then with the corrective
            block for the previous attempt's violations.
        validator_fn: Validates one output.
        max_attempts: Attempt budget (>= 1).
        label: Name used in log messages.

    The outcome holds the first valid attempt, or the best-scoring attempt
    (earliest on ties) flagged best_effort. Errors from phase_fn propagate.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

    attempts: list[Attempt[T]] = []
    feedback: str | None = None

    for number in range(1, max_attempts + 1):
        output = phase_fn(feedback)
        validation = validator_fn(output)
        attempt = Attempt(number=number, output=output, validation=validation, feedback=feedback)
        attempts.append(attempt)
        yield attempt

        if validation.is_valid:
            if number > 1:
                logger.info(f"{label or 'phase'} valid on attempt {number}")
            return RegenerationOutcome(output=output, validation=validation, attempts=attempts)

        logger.info(
            f"{label or 'phase'} attempt {number}/{max_attempts} invalid: "
            f"{len(validation.violations)} violations, score={validation.score:.2f}"
        )
        feedback = format_violations_for_prompt(validation.violations)

    # max() keeps the first of equal scores
    best = max(attempts, key=lambda a: a.validation.score)
    logger.warning(
        f"{label or 'phase'} exhausted {max_attempts} attempts; "
        f"returning attempt {best.number} (score={best.validation.score:.2f}) in best-effort mode"
    )
    return RegenerationOutcome(
        output=best.output,
        validation=best.validation,
        attempts=attempts,
        best_effort=True,
    )


def generate_with_validation(
    phase_fn: Callable[[str | None], T],
    validator_fn: Callable[[T], ValidationResult],
    max_attempts: int,
    on_attempt: Callable[[Attempt[T]], None] | None = None,
    label: str = "",
) -> RegenerationOutcome[T]:
    """Run regenerate() to completion, calling on_attempt after each attempt."""
    attempts = regenerate(phase_fn, validator_fn, max_attempts, label)
    while True:
        try:
            attempt = next(attempts)
        except StopIteration as done:
            return done.value
        if on_attempt:
            on_attempt(attempt)
