"""Stage artifacts - one closed schema per pipeline phase."""

from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class Artifact(BaseModel):
    """Base for all stage artifacts. Immutable once accepted."""
    model_config = ConfigDict(frozen=True)

    missing_inputs: tuple[str, ...] = ()
    notes: tuple[str, ...] = ()


# ===== Phase 1: Creative Brief =====

class ReaderModel(BaseModel):
    model_config = ConfigDict(frozen=True)
    what_they_want_now: str
    what_they_fear_or_resist: str
    what_they_already_believe: str
    what_would_make_them_trust: str


class Stance(BaseModel):
    model_config = ConfigDict(frozen=True)
    we_assert: str
    we_reject: str
    confidence_level: Literal["low", "medium", "high"]


class Nonnegotiables(BaseModel):
    model_config = ConfigDict(frozen=True)
    must_include: tuple[str, ...] = ()
    must_avoid: tuple[str, ...] = ()


class CreativeBrief(Artifact):
    reader_model: ReaderModel
    single_job: str                       # One sentence: what this piece must accomplish
    stance: Stance
    proof_lane: Literal["data", "mechanism", "authority", "case", "comparison", "constraint"]
    nonnegotiables: Nonnegotiables
    success_criteria: tuple[str, ...] = ()
    risk_notes: tuple[str, ...] = ()


# ===== Phase 2: Message Architecture =====

class SupportingClaim(BaseModel):
    model_config = ConfigDict(frozen=True)
    claim: str
    role: Literal["why true", "why now", "why us", "why safe", "why different"]


class ProofPlanEntry(BaseModel):
    model_config = ConfigDict(frozen=True)
    supports: str                         # primary | supporting:0 | supporting:1 ...
    proof: str
    proof_type: Literal["data", "mechanism", "authority", "case", "comparison", "constraint"]


class ObjectionPlanEntry(BaseModel):
    model_config = ConfigDict(frozen=True)
    objection: str
    answer: str


class Ordering(BaseModel):
    model_config = ConfigDict(frozen=True)
    sequence: tuple[str, ...]
    why_this_order: str


class MessageArchitecture(Artifact):
    throughline: str
    primary_claim: str
    supporting_claims: tuple[SupportingClaim, ...] = ()
    proof_plan: tuple[ProofPlanEntry, ...] = ()
    objection_plan: tuple[ObjectionPlanEntry, ...] = ()
    ordering: Ordering
    allowed_claim_strength: Literal["soft", "firm", "bold"]


# ===== Phase 3: Beat Sheet =====

BeatFunction = Literal[
    "hook", "context", "claim", "proof", "mechanism", "objection", "example",
    "cta", "kicker", "tension", "resolution", "action", "nutgraf", "problem",
    "solution",
]

FirstWordType = Literal["noun", "verb", "imperative", "pronoun", "question_word"]

RequiredElement = Literal["specific_noun", "number", "proper_noun", "imperative", "question"]


class BeatLength(BaseModel):
    model_config = ConfigDict(frozen=True)
    unit: Literal["words", "chars"] = "words"
    min: int = 0
    max: int


class BeatStructure(BaseModel):
    """Hard structural constraints for one beat."""
    model_config = ConfigDict(frozen=True)
    max_words: int
    required_elements: tuple[RequiredElement, ...] = ()   # at least one must appear
    first_word_types: tuple[FirstWordType, ...] = ()      # opening word must be one of these
    forbidden_in_beat: tuple[str, ...] = ()


class Beat(BaseModel):
    model_config = ConfigDict(frozen=True)
    id: str                               # B1, B2, ...
    function: BeatFunction
    job: str
    key_points: tuple[str, ...] = ()
    must_echo_terms: tuple[str, ...] = ()
    must_include_from_inputs: tuple[str, ...] = ()
    target_length: BeatLength
    structure: BeatStructure
    handoff: str = ""


class TotalLength(BaseModel):
    model_config = ConfigDict(frozen=True)
    unit: Literal["words", "chars"] = "words"
    target: int
    hard_max: int


class WritingConstraints(BaseModel):
    """Global rules; apply to every validation after the beat sheet exists."""
    model_config = ConfigDict(frozen=True)
    max_sentence_words: int
    max_adjectives_per_noun: int
    specific_detail_every_n_sentences: int
    forbidden_words: tuple[str, ...] = ()
    forbidden_patterns: tuple[str, ...] = ()


class BeatSheet(Artifact):
    total_length: TotalLength
    beats: tuple[Beat, ...]
    writing_constraints: WritingConstraints
    format_rules: tuple[str, ...] = ()
    forbidden_moves: tuple[str, ...] = ()


# ===== Phase 4-7: Drafts =====

class BeatTraceEntry(BaseModel):
    model_config = ConfigDict(frozen=True)
    beat_id: str
    start_snippet: str                    # First few words of this beat in the draft
    end_snippet: str = ""


class SelfCheck(BaseModel):
    model_config = ConfigDict(frozen=True)
    followed_beats: bool
    added_new_claims: bool
    where_it_might_drift: tuple[str, ...] = ()


class DraftV0(Artifact):
    draft: str
    beat_trace: tuple[BeatTraceEntry, ...] = ()
    self_check: SelfCheck


class SentenceTopic(BaseModel):
    model_config = ConfigDict(frozen=True)
    sentence_index: int
    topic: str
    opening_words: str


class TopicBreak(BaseModel):
    model_config = ConfigDict(frozen=True)
    sentence_index: int
    issue: str
    fix: str


class TopicChain(BaseModel):
    model_config = ConfigDict(frozen=True)
    sentence_topics: tuple[SentenceTopic, ...] = ()
    breaks: tuple[TopicBreak, ...] = ()


class StressPositionIssue(BaseModel):
    model_config = ConfigDict(frozen=True)
    sentence_index: int
    problem: str
    rewrite_hint: str


class BridgeAdded(BaseModel):
    model_config = ConfigDict(frozen=True)
    between: str                          # e.g. "paragraph 2 -> 3"
    bridge_goal: str


class CohesionReport(Artifact):
    topic_chain: TopicChain
    stress_position_issues: tuple[StressPositionIssue, ...] = ()
    bridges_added: tuple[BridgeAdded, ...] = ()
    draft_v1: str


class SentenceDistribution(BaseModel):
    model_config = ConfigDict(frozen=True)
    short_0_10: int
    mid_11_20: int
    long_21_plus: int


class SentenceStats(BaseModel):
    model_config = ConfigDict(frozen=True)
    count: int
    avg_words: float
    distribution: SentenceDistribution


class CadenceMove(BaseModel):
    model_config = ConfigDict(frozen=True)
    move: str
    where: str
    reason: str


class ParagraphingChange(BaseModel):
    model_config = ConfigDict(frozen=True)
    change: str                           # split, merge
    where: str
    reason: str


class RhythmReport(Artifact):
    sentence_stats: SentenceStats
    cadence_moves: tuple[CadenceMove, ...] = ()
    paragraphing_changes: tuple[ParagraphingChange, ...] = ()
    draft_v2: str


class ScanOptimization(BaseModel):
    model_config = ConfigDict(frozen=True)
    first_lines_strengthened: bool
    left_edge_words_loaded: bool
    formatting_used: tuple[str, ...] = ()


class ChannelPassReport(Artifact):
    channel_rules_applied: tuple[str, ...] = ()
    scan_optimization: ScanOptimization
    draft_v3: str


# ===== Phase 8: Final Package =====

class Variants(BaseModel):
    model_config = ConfigDict(frozen=True)
    direct: str
    story_led: str
    conversational: str


class Extras(BaseModel):
    model_config = ConfigDict(frozen=True)
    email_subject_lines: tuple[str, ...] = ()
    preheaders: tuple[str, ...] = ()
    headlines: tuple[str, ...] = ()
    meta_descriptions: tuple[str, ...] = ()
    cta_options: tuple[str, ...] = ()


class QAChecklist(BaseModel):
    model_config = ConfigDict(frozen=True)
    matches_single_job: bool
    no_new_claims: bool
    proof_lane_consistent: bool
    contains_concrete_detail: bool
    contains_constraint_or_tradeoff: bool
    stance_present: bool
    length_ok: bool


class FinalPackage(Artifact):
    final: str
    variants: Variants
    extras: Extras = Field(default_factory=Extras)
    qa: QAChecklist


PhaseKey = Literal[
    "creative_brief",
    "message_architecture",
    "beat_sheet",
    "draft_v0",
    "cohesion_report",
    "rhythm_report",
    "channel_pass",
    "final_package",
]

# Tagged union: phase key -> artifact schema
ARTIFACT_SCHEMAS: dict[str, type[Artifact]] = {
    "creative_brief": CreativeBrief,
    "message_architecture": MessageArchitecture,
    "beat_sheet": BeatSheet,
    "draft_v0": DraftV0,
    "cohesion_report": CohesionReport,
    "rhythm_report": RhythmReport,
    "channel_pass": ChannelPassReport,
    "final_package": FinalPackage,
}


def draft_text(artifact: Artifact) -> str | None:
    """Return the prose carried by an artifact, or None for planning artifacts."""
    if isinstance(artifact, DraftV0):
        return artifact.draft
    if isinstance(artifact, CohesionReport):
        return artifact.draft_v1
    if isinstance(artifact, RhythmReport):
        return artifact.draft_v2
    if isinstance(artifact, ChannelPassReport):
        return artifact.draft_v3
    if isinstance(artifact, FinalPackage):
        return artifact.final
    return None


@dataclass(frozen=True)
class ParseResult:
    """Outcome of coercing raw generation output into a schema."""
    ok: bool
    artifact: BaseModel | None = None
    reason: str | None = None


def parse_artifact(schema: type[BaseModel], payload: Any) -> ParseResult:
    """Coerce model output (JSON text, dict or model) into `schema`. Never raises."""
    try:
        if isinstance(payload, schema):
            return ParseResult(ok=True, artifact=payload)
        if isinstance(payload, BaseModel):
            payload = payload.model_dump()
        if isinstance(payload, (str, bytes)):
            if not payload.strip():
                return ParseResult(ok=False, reason="Empty output")
            return ParseResult(ok=True, artifact=schema.model_validate_json(payload))
        if isinstance(payload, dict):
            return ParseResult(ok=True, artifact=schema.model_validate(payload))
    except ValidationError as e:
        return ParseResult(ok=False, reason=f"{schema.__name__} validation failed: {e.error_count()} errors: {e.errors()[0]['msg']}")
    except ValueError as e:
        return ParseResult(ok=False, reason=f"{schema.__name__} could not be parsed: {e}")
    return ParseResult(ok=False, reason=f"Unsupported output type: {type(payload).__name__}")
