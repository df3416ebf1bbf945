"""Phase table and prompt building for the 8-phase pipeline."""

from dataclasses import asdict, dataclass
from pathlib import Path

from pydantic import BaseModel

from ..models.artifacts import (
    ARTIFACT_SCHEMAS,
    ChannelPassReport,
    CohesionReport,
    MessageArchitecture,
    RhythmReport,
)
from ..models.copy_types import get_copy_type_rules
from ..models.task_spec import TaskSpec
from ..utils import to_json

PROMPTS_DIR = Path(__file__).parent.parent / "prompts"


@dataclass(frozen=True)
class PhaseSpec:
    index: int
    key: str
    name: str                         # display name for events
    requires: tuple[str, ...] = ()    # upstream artifacts that must exist
    validated: bool = False           # runs through the regeneration loop

    @property
    def schema(self) -> type[BaseModel]:
        return ARTIFACT_SCHEMAS[self.key]


PHASES: tuple[PhaseSpec, ...] = (
    PhaseSpec(1, "creative_brief", "Creative Brief"),
    PhaseSpec(2, "message_architecture", "Message Architecture", ("creative_brief",)),
    PhaseSpec(3, "beat_sheet", "Beat Sheet + Rules", ("message_architecture",)),
    PhaseSpec(4, "draft_v0", "Validated Draft V0", ("beat_sheet",), validated=True),
    PhaseSpec(5, "cohesion_report", "Draft V1 (Cohesion)", ("beat_sheet", "draft_v0")),
    PhaseSpec(6, "rhythm_report", "Draft V2 (Rhythm)", ("beat_sheet", "cohesion_report")),
    PhaseSpec(7, "channel_pass", "Draft V3 (Channel)", ("beat_sheet", "rhythm_report")),
    PhaseSpec(8, "final_package", "Final Package", ("message_architecture", "channel_pass"), validated=True),
)


def load_prompt(phase_key: str) -> str:
    """Load the system prompt for a phase."""
    path = PROMPTS_DIR / f"{phase_key}.txt"
    if not path.exists():
        raise FileNotFoundError(f"Prompt file not found: {path}")
    return path.read_text(encoding="utf-8").strip()


def _copy_type_constraints(task_spec: TaskSpec) -> str:
    rules = get_copy_type_rules(task_spec.copy_type)
    return "\n".join([
        "COPY TYPE CONSTRAINTS (ENFORCE THESE):",
        f"- Maximum {rules.max_beats} beats allowed",
        f"- Target word count: {task_spec.length_budget.target} {task_spec.length_budget.unit}",
        f"- Hard maximum: {task_spec.length_budget.hard_max} {task_spec.length_budget.unit}",
    ])


def _copy_type_rules_json(task_spec: TaskSpec) -> str:
    rules = asdict(get_copy_type_rules(task_spec.copy_type))
    return to_json(rules)


def build_user_message(
    phase_key: str,
    task_spec: TaskSpec,
    artifacts: dict[str, BaseModel],
    feedback: str | None = None,
) -> str:
    """Build the user message for a phase from the task and upstream artifacts.

    Feedback from a failed attempt is appended as extra context; it never
    changes the expected output schema.
    """
    sections = [_instruction(phase_key, task_spec), f"TaskSpec:\n{to_json(task_spec)}"]

    if phase_key == "message_architecture":
        sections.append(f"CreativeBrief:\n{to_json(artifacts['creative_brief'])}")
    elif phase_key == "beat_sheet":
        sections.append(f"COPY TYPE RULES (MUST BE INCLUDED IN OUTPUT):\n{_copy_type_rules_json(task_spec)}")
        sections.append(f"MessageArchitecture:\n{to_json(artifacts['message_architecture'])}")
    elif phase_key == "draft_v0":
        sections.append(f"BeatSheet:\n{to_json(artifacts['beat_sheet'])}")
    elif phase_key == "cohesion_report":
        sections.append(f"BeatSheet:\n{to_json(artifacts['beat_sheet'])}")
        sections.append(f"DraftV0:\n{to_json(artifacts['draft_v0'])}")
    elif phase_key == "rhythm_report":
        cohesion: CohesionReport = artifacts["cohesion_report"]
        sections.append(f"BeatSheet:\n{to_json(artifacts['beat_sheet'])}")
        sections.append(f"DraftV1:\n{cohesion.draft_v1}")
    elif phase_key == "channel_pass":
        rhythm: RhythmReport = artifacts["rhythm_report"]
        sections.append(f"BeatSheet:\n{to_json(artifacts['beat_sheet'])}")
        sections.append(f"DraftV2:\n{rhythm.draft_v2}")
    elif phase_key == "final_package":
        architecture: MessageArchitecture = artifacts["message_architecture"]
        channel: ChannelPassReport = artifacts["channel_pass"]
        sections.append(f"MessageArchitecture:\n{to_json(architecture)}")
        sections.append(f"DraftV3:\n{channel.draft_v3}")

    message = "\n\n".join(sections)
    if feedback:
        message = f"{message}\n\n{feedback}"
    return message


def _instruction(phase_key: str, task_spec: TaskSpec) -> str:
    if phase_key == "creative_brief":
        return (
            "Create CreativeBrief from the TaskSpec below.\n"
            "The single_job must be ONE thing. Pick the one thing that will make them act.\n\n"
            + _copy_type_constraints(task_spec)
        )
    if phase_key == "message_architecture":
        return (
            "Build MessageArchitecture from TaskSpec + CreativeBrief.\n"
            "Every claim must trace back to proof material in the inputs."
        )
    if phase_key == "beat_sheet":
        return (
            f"Create a BeatSheet for this {task_spec.copy_type} ({task_spec.channel}).\n"
            "It builds ONE argument. Each beat flows into the next.\n"
            "Copy the copy type rules into writing_constraints and each beat's structure."
        )
    if phase_key == "draft_v0":
        return (
            "Write DraftV0 from this BeatSheet.\n"
            "Enforce writing_constraints and every beat's structure. "
            "Fill beat_trace with the first words of each beat as they appear in the draft."
        )
    if phase_key == "cohesion_report":
        return "Perform a cohesion pass on DraftV0. Return a CohesionReport and revised draft_v1."
    if phase_key == "rhythm_report":
        return "Perform a rhythm pass on draft_v1. Return RhythmReport + draft_v2."
    if phase_key == "channel_pass":
        return f"Apply a Channel Pass to draft_v2 for channel {task_spec.channel}. Return ChannelPassReport + draft_v3."
    if phase_key == "final_package":
        return (
            "Finalize draft_v3 into FinalPackage.\n"
            "Rewrite any sentence that uses a forbidden word. Fill the QA checklist honestly."
        )
    raise ValueError(f"Unknown phase: {phase_key}")
