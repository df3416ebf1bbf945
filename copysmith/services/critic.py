"""Critic service - rubric-based quality judgment of finished copy.

Different from the draft validator: this judges effectiveness and voice,
not mechanical rule conformance.
"""

import logging
from pathlib import Path

from ..config import ModelConfig, get_phase_config
from ..models.critique import CriterionResult, CritiqueResponse, CritiqueResult, RubricCriterion
from .executor import PhaseExecutor

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).parent.parent / "prompts"

BASE_RUBRIC: list[RubricCriterion] = [
    RubricCriterion("Single Clear Purpose", "Does this copy have ONE clear job, not multiple competing goals?", "critical"),
    RubricCriterion("Human Voice", "Does this sound like a real person wrote it, not AI or a corporate template?", "critical"),
    RubricCriterion("Specific Details", "Does it include specific facts, not vague generalities?", "critical"),
    RubricCriterion("No Fabrication", "Are all claims grounded in the provided information, with no invented stats or stories?", "critical"),
    RubricCriterion("Clear Action", "Is there a single, obvious next step the reader should take?", "important"),
    RubricCriterion("Appropriate Length", "Is it concise without feeling rushed or incomplete?", "important"),
    RubricCriterion("No Cliches", 'Is it free of AI cliches like "thrilled", "journey", "dive into"?', "critical"),
]

COPY_TYPE_RUBRICS: dict[str, list[RubricCriterion]] = {
    # Email campaign types
    "welcome": [
        RubricCriterion("Confirms Signup", "Does it acknowledge what they signed up for without excessive enthusiasm?", "critical"),
        RubricCriterion("Immediate Value", "Does it provide something useful (a tip, fact, or insight) right away?", "critical"),
        RubricCriterion("First Step", "Is there a specific, actionable first step they can take?", "important"),
    ],
    "abandoned_cart": [
        RubricCriterion("Addresses Hesitation", "Does it address why they might have hesitated to buy?", "critical"),
        RubricCriterion("Not Pushy", "Is it helpful rather than desperate or guilt-trippy?", "important"),
        RubricCriterion("Clear Return Path", "Is it easy to understand how to complete the purchase?", "important"),
    ],
    "nurture": [
        RubricCriterion("Teaches Something", "Does the reader learn something valuable they didn't know before?", "critical"),
        RubricCriterion("Credible Insight", "Is the insight backed by specific evidence or reasoning?", "critical"),
        RubricCriterion("Natural Product Connection", "If the product is mentioned, does it flow naturally from the content?", "important"),
    ],
    "launch": [
        RubricCriterion("Clear Announcement", "Is it immediately clear what's new?", "critical"),
        RubricCriterion("Why Care", "Does it explain why the reader should care about this new thing?", "critical"),
        RubricCriterion("Availability Clear", "Is it clear how and when they can get it?", "important"),
    ],
    "reengagement": [
        RubricCriterion("Reason to Return", "Does it give a compelling reason to re-engage?", "critical"),
        RubricCriterion("Not Guilt-Trippy", 'Does it avoid "we miss you" or making the reader feel bad?', "important"),
        RubricCriterion("Easy Action", "Is the re-engagement action low-friction?", "important"),
    ],
    # Copy type defaults
    "email": [
        RubricCriterion("Opens Cold", "Does the first line make a statement instead of a greeting?", "important"),
    ],
    "website": [
        RubricCriterion("States What It Does", "Does the first line say what the product does, not what it helps with?", "critical"),
        RubricCriterion("Scannable", "Can a skimming reader get the point from first lines alone?", "important"),
    ],
    "social": [
        RubricCriterion("Complete First Line", "Is the first line a complete thought, not a teaser?", "critical"),
        RubricCriterion("Earns The Scroll-Stop", "Would a reader stop on this in a busy feed?", "nice_to_have"),
    ],
    "article": [
        RubricCriterion("Clear Thesis", "Is the central argument stated early and defended throughout?", "critical"),
        RubricCriterion("Evidence Per Claim", "Is each claim followed by proof?", "important"),
    ],
}


def get_rubric(copy_type: str, subtype: str | None = None) -> list[RubricCriterion]:
    """Base rubric plus the subtype rubric (if known), else the copy type rubric."""
    extra = COPY_TYPE_RUBRICS.get(subtype or "") or COPY_TYPE_RUBRICS.get(copy_type, [])
    return [*BASE_RUBRIC, *extra]


def enforce_rubric(response: CritiqueResponse, rubric: list[RubricCriterion]) -> CritiqueResult:
    """Turn raw critic output into a CritiqueResult that honors the rubric.

    Weights come from the rubric, not the model. A failed critical criterion
    forces a fail. A fail always carries regeneration instructions.
    """
    weights = {c.name.lower(): c.weight for c in rubric}
    results = [
        CriterionResult(
            criterion=r.criterion,
            weight=weights.get(r.criterion.lower(), r.weight),
            passed=r.passed,
            feedback=r.feedback,
        )
        for r in response.rubric_results
    ]

    critical_failed = [r for r in results if r.weight == "critical" and not r.passed]
    overall_pass = response.overall_pass and not critical_failed
    if response.overall_pass and critical_failed:
        logger.info(f"Critic passed copy with {len(critical_failed)} failed critical criteria; forcing fail")

    instructions = (response.regeneration_instructions or "").strip() or None
    if overall_pass:
        instructions = None
    elif instructions is None:
        instructions = _instructions_from(results, response.improvements)

    score = min(10, max(1, round(response.score)))

    return CritiqueResult(
        overall_pass=overall_pass,
        score=score,
        rubric_results=results,
        regeneration_instructions=instructions,
        strengths=list(response.strengths),
        improvements=list(response.improvements),
    )


def _instructions_from(results: list[CriterionResult], improvements: list[str]) -> str:
    failed = [r for r in results if not r.passed]
    # Critical first, then rubric order
    failed.sort(key=lambda r: r.weight != "critical")
    lines = [f"- Fix {r.criterion}: {r.feedback or 'criterion failed'}" for r in failed]
    lines.extend(f"- {item}" for item in improvements)
    if not lines:
        lines = ["- Rewrite the copy so every critical rubric criterion passes."]
    return "Rewrite the copy to address these problems:\n" + "\n".join(lines)


class CriticService:
    """Evaluate copy against base + copy-type rubrics."""

    def __init__(self, executor: PhaseExecutor, config: ModelConfig | None = None):
        self.executor = executor
        self.config = config or get_phase_config("critic")

    def critique(self, text: str, copy_type: str, context: dict | None = None) -> CritiqueResult:
        """
        Critique one piece of copy.

        Args:
            text: Copy to evaluate.
            copy_type: email | website | social | article.
            context: Optional facts the copy should use. Keys "subtype"
                (e.g. abandoned_cart), "audience", "goal", "product",
                "provided_info" (dict) are read when present.
        """
        context = context or {}
        rubric = get_rubric(copy_type, context.get("subtype"))
        system_prompt = self._load_prompt()
        prompt = self._build_prompt(text, copy_type, context, rubric)

        response = self.executor.execute(self.config, CritiqueResponse, system_prompt, prompt)
        result = enforce_rubric(response, rubric)
        logger.info(f"Critique: pass={result.overall_pass}, score={result.score}, failed={len(result.failed_criteria)}")
        return result

    def _build_prompt(
        self,
        text: str,
        copy_type: str,
        context: dict,
        rubric: list[RubricCriterion],
    ) -> str:
        kind = context.get("subtype") or copy_type
        lines = [f"Evaluate this {kind} copy."]
        for key in ("product", "audience", "goal"):
            if context.get(key):
                lines.append(f"{key.upper()}: {context[key]}")

        provided = context.get("provided_info") or {}
        if provided:
            lines.append("")
            lines.append("USER PROVIDED THIS INFO (the copy should use this):")
            lines.extend(f'- {q}: "{a}"' for q, a in provided.items())

        lines.extend(["", "COPY TO EVALUATE:", "---", text, "---", "", "RUBRIC:"])
        lines.extend(
            f"{i}. [{c.weight.upper()}] {c.name}: {c.question}"
            for i, c in enumerate(rubric, start=1)
        )
        lines.extend([
            "",
            "Evaluate each criterion. The copy FAILS if any CRITICAL criterion fails.",
            "Be specific in your feedback. If you say something fails, quote the problematic text.",
        ])
        return "\n".join(lines)

    def _load_prompt(self) -> str:
        path = PROMPTS_DIR / "critic.txt"
        if not path.exists():
            raise FileNotFoundError(f"Prompt file not found: {path}")
        return path.read_text(encoding="utf-8").strip()
