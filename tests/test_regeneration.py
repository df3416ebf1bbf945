import pytest

from copysmith.models.validation import ValidationResult, Violation, ViolationType
from copysmith.services.regeneration import (
    MAX_FEEDBACK_VIOLATIONS,
    format_violations_for_prompt,
    generate_with_validation,
    regenerate,
)


def violation(word):
    return Violation(
        type=ViolationType.FORBIDDEN_WORD,
        details=f'The word "{word}" is forbidden. Remove or replace it.',
        location=f'char 0: "{word}"',
    )


def invalid(score, *words):
    return ValidationResult(is_valid=False, score=score, violations=[violation(w) for w in words or ("amazing",)])


VALID = ValidationResult(is_valid=True, score=1.0)


class ScriptedPhase:
    """Returns outputs in order and records the feedback each call received."""

    def __init__(self, outputs):
        self.outputs = list(outputs)
        self.feedback = []

    def __call__(self, feedback):
        self.feedback.append(feedback)
        return self.outputs[len(self.feedback) - 1]


def test_first_valid_attempt_is_returned():
    phase = ScriptedPhase(["good"])
    outcome = generate_with_validation(phase, lambda _: VALID, max_attempts=3)

    assert outcome.output == "good"
    assert outcome.attempt_count == 1
    assert not outcome.best_effort
    assert phase.feedback == [None]


def test_feedback_carries_previous_violations():
    results = {"a": invalid(0.5, "amazing"), "b": invalid(0.6, "thrilled"), "c": VALID}
    phase = ScriptedPhase(["a", "b", "c"])

    outcome = generate_with_validation(phase, results.__getitem__, max_attempts=3)

    assert outcome.output == "c"
    assert outcome.attempt_count == 3
    assert phase.feedback[0] is None
    assert '"amazing"' in phase.feedback[1]
    assert '"thrilled"' in phase.feedback[2]
    assert '"amazing"' not in phase.feedback[2]
    assert [a.feedback for a in outcome.attempts] == phase.feedback


def test_best_effort_picks_highest_score():
    results = {"a": invalid(0.4), "b": invalid(0.6), "c": invalid(0.5)}
    outcome = generate_with_validation(ScriptedPhase(["a", "b", "c"]), results.__getitem__, max_attempts=3)

    assert outcome.best_effort
    assert outcome.output == "b"
    assert outcome.attempt_count == 3
    assert outcome.unresolved_violations == results["b"].violations


def test_ties_keep_the_earliest_attempt():
    results = {"a": invalid(0.5), "b": invalid(0.5)}
    outcome = generate_with_validation(ScriptedPhase(["a", "b"]), results.__getitem__, max_attempts=2)

    assert outcome.output == "a"


def test_on_attempt_sees_every_attempt():
    seen = []
    results = {"a": invalid(0.5), "b": VALID}
    generate_with_validation(ScriptedPhase(["a", "b"]), results.__getitem__, max_attempts=2, on_attempt=seen.append)

    assert [a.number for a in seen] == [1, 2]
    assert [a.validation.is_valid for a in seen] == [False, True]


def test_regenerate_yields_each_attempt_before_the_next_call():
    phase = ScriptedPhase(["a", "b"])
    attempts = regenerate(phase, {"a": invalid(0.5), "b": VALID}.__getitem__, max_attempts=3)

    first = next(attempts)
    assert first.number == 1
    assert phase.feedback == [None]

    assert next(attempts).number == 2
    with pytest.raises(StopIteration) as done:
        next(attempts)
    assert done.value.value.output == "b"

def test_phase_errors_propagate():
    def boom(feedback):
        raise RuntimeError("model down")

    with pytest.raises(RuntimeError):
        generate_with_validation(boom, lambda _: VALID, max_attempts=2)


def test_attempt_budget_must_be_positive():
    with pytest.raises(ValueError):
        generate_with_validation(ScriptedPhase(["a"]), lambda _: VALID, max_attempts=0)


class TestFormatViolations:
    def test_caps_feedback_and_counts_the_rest(self):
        words = ["amazing", "super", "just", "very", "really"]
        text = format_violations_for_prompt([violation(w) for w in words])

        assert text.startswith("YOUR PREVIOUS ATTEMPT VIOLATED THESE RULES:")
        for w in words[:MAX_FEEDBACK_VIOLATIONS]:
            assert f'"{w}"' in text
        assert '"very"' not in text
        assert "...and 2 more" in text

    def test_line_format(self):
        text = format_violations_for_prompt([violation("amazing")])

        assert '- forbidden_word (char 0: "amazing"): The word "amazing" is forbidden.' in text
        assert "more" not in text.split("REWRITE")[0]

    def test_empty(self):
        assert format_violations_for_prompt([]) == ""
