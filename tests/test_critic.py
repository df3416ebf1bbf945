import pytest
from pydantic import ValidationError

from copysmith.models.critique import CriterionResult, CritiqueResponse, CritiqueResult
from copysmith.services.critic import BASE_RUBRIC, CriticService, enforce_rubric, get_rubric

from fakes import FakeLLM, critique_payload


def response(**overrides):
    return CritiqueResponse.model_validate({**critique_payload(), **overrides})


class TestRubric:
    def test_subtype_rubric_wins_over_copy_type(self):
        names = [c.name for c in get_rubric("email", "abandoned_cart")]

        assert names[:len(BASE_RUBRIC)] == [c.name for c in BASE_RUBRIC]
        assert "Addresses Hesitation" in names
        assert "Opens Cold" not in names

    def test_copy_type_rubric_when_no_subtype(self):
        names = [c.name for c in get_rubric("website")]

        assert "States What It Does" in names

    def test_unknown_copy_type_gets_base_rubric(self):
        assert get_rubric("landing_page") == BASE_RUBRIC


class TestEnforceRubric:
    def test_clean_pass(self):
        result = enforce_rubric(response(), get_rubric("email"))

        assert result.overall_pass
        assert result.score == 8
        assert result.regeneration_instructions is None

    def test_failed_critical_criterion_forces_fail(self):
        raw = response(**critique_payload(passed=True, critical_failed=True))
        result = enforce_rubric(raw, get_rubric("email"))

        assert not result.overall_pass
        assert [r.criterion for r in result.failed_criteria] == ["Human Voice"]
        assert "Fix Human Voice: Reads like a template" in result.regeneration_instructions

    def test_weights_come_from_rubric(self):
        raw = response(rubric_results=[
            {"criterion": "human voice", "weight": "nice_to_have", "passed": False, "feedback": "stiff"},
        ])
        result = enforce_rubric(raw, get_rubric("email"))

        assert result.rubric_results[0].weight == "critical"
        assert not result.overall_pass

    def test_model_instructions_are_kept(self):
        raw = response(**critique_payload(passed=False, instructions="Cut the greeting."))
        result = enforce_rubric(raw, get_rubric("email"))

        assert result.regeneration_instructions == "Cut the greeting."

    def test_missing_instructions_are_derived(self):
        raw = response(overall_pass=False, score=3, improvements=["Name the bank"])
        result = enforce_rubric(raw, get_rubric("email"))

        assert result.regeneration_instructions.startswith("Rewrite the copy")
        assert "- Name the bank" in result.regeneration_instructions

    def test_instructions_dropped_on_pass(self):
        raw = response(regeneration_instructions="unused")

        assert enforce_rubric(raw, get_rubric("email")).regeneration_instructions is None

    @pytest.mark.parametrize("raw_score,expected", [(0, 1), (7.6, 8), (14, 10)])
    def test_score_is_clamped(self, raw_score, expected):
        result = enforce_rubric(response(score=raw_score), get_rubric("email"))

        assert result.score == expected


class TestCritiqueResult:
    def test_fail_requires_instructions(self):
        with pytest.raises(ValidationError):
            CritiqueResult(overall_pass=False, score=3)

    def test_pass_with_failed_critical_is_rejected(self):
        failed = CriterionResult(criterion="Human Voice", weight="critical", passed=False)
        with pytest.raises(ValidationError):
            CritiqueResult(overall_pass=True, score=8, rubric_results=[failed])


class TestCriticService:
    def test_critique_uses_context_in_prompt(self, make_executor):
        llm = FakeLLM()
        critic = CriticService(make_executor(llm))

        result = critic.critique(
            "Acme Ledger closes your books in 3 days.",
            "email",
            {"subtype": "launch", "product": "Acme Ledger", "provided_info": {"Best proof?": "Nordic Bank"}},
        )

        assert result.overall_pass
        prompt = llm.calls_for("CritiqueResponse")[0]["prompt"]
        assert prompt.startswith("Evaluate this launch copy.")
        assert "PRODUCT: Acme Ledger" in prompt
        assert '- Best proof?: "Nordic Bank"' in prompt
        assert "[CRITICAL] Clear Announcement" in prompt
        assert llm.calls_for("CritiqueResponse")[0]["system_prompt"]
