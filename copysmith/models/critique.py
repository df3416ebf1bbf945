"""Critique models - rubric-based quality judgment."""

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, Field, model_validator

Weight = Literal["critical", "important", "nice_to_have"]


@dataclass(frozen=True)
class RubricCriterion:
    name: str
    question: str
    weight: Weight


class CriterionResult(BaseModel):
    criterion: str
    weight: Weight = "important"
    passed: bool
    feedback: str = ""


class CritiqueResponse(BaseModel):
    """Raw critic output as the model returns it. Not trusted until enforced."""
    overall_pass: bool
    score: float
    rubric_results: list[CriterionResult] = Field(default_factory=list)
    regeneration_instructions: str | None = None
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)


class CritiqueResult(BaseModel):
    """One critic verdict. Ephemeral: used to gate or annotate final output."""
    overall_pass: bool
    score: int = Field(ge=1, le=10)
    rubric_results: list[CriterionResult] = Field(default_factory=list)
    regeneration_instructions: str | None = None
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_consistency(self):
        if not self.overall_pass and not (self.regeneration_instructions or "").strip():
            raise ValueError("regeneration_instructions required when overall_pass is false")
        if self.overall_pass and any(
            r.weight == "critical" and not r.passed for r in self.rubric_results
        ):
            raise ValueError("overall_pass cannot be true with a failed critical criterion")
        return self

    @property
    def failed_criteria(self) -> list[CriterionResult]:
        return [r for r in self.rubric_results if not r.passed]
