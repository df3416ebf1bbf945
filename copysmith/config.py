import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

# API Keys and Config - loaded from .env
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
COPYSMITH_STORE_DIR = os.getenv("COPYSMITH_STORE_DIR")
COPYSMITH_WEBHOOK_URL = os.getenv("COPYSMITH_WEBHOOK_URL")
COPYSMITH_STRICT = os.getenv("COPYSMITH_STRICT", "false").lower() in ("1", "true", "yes")
COPYSMITH_LOG_LEVEL = os.getenv("COPYSMITH_LOG_LEVEL", "INFO")

# Pipeline policy
EXECUTOR_MAX_RETRIES = 2          # total tries = 1 + retries
EXECUTOR_BACKOFF_SECONDS = 1.0
DRAFT_MAX_ATTEMPTS = 3            # draft is cheaper to regenerate than final QA
FINAL_MAX_ATTEMPTS = 2


@dataclass(frozen=True)
class ModelConfig:
    """Opaque generation settings handed to the LLM client."""
    model: str
    temperature: float = 0.7
    max_tokens: int = 4096


@dataclass(frozen=True)
class PhaseModelConfig:
    phase: str
    config: ModelConfig
    rationale: str


PHASE_MODEL_CONFIGS: dict[str, PhaseModelConfig] = {
    "creative_brief": PhaseModelConfig(
        "creative_brief",
        ModelConfig("gpt-4.1", temperature=0.7),
        "Reasoning about reader psychology and stance",
    ),
    "message_architecture": PhaseModelConfig(
        "message_architecture",
        ModelConfig("gpt-4.1", temperature=0.6),
        "Claim hierarchy and proof mapping",
    ),
    "beat_sheet": PhaseModelConfig(
        "beat_sheet",
        ModelConfig("gpt-4.1", temperature=0.6),
        "Sequencing beats with handoff logic",
    ),
    "draft_v0": PhaseModelConfig(
        "draft_v0",
        ModelConfig("gpt-4o", temperature=0.8, max_tokens=8192),
        "Prose generation from structured constraints",
    ),
    "cohesion_report": PhaseModelConfig(
        "cohesion_report",
        ModelConfig("gpt-4o-mini", temperature=0.5),
        "Mechanical topic-chain analysis",
    ),
    "rhythm_report": PhaseModelConfig(
        "rhythm_report",
        ModelConfig("gpt-4o-mini", temperature=0.5),
        "Sentence stats and cadence tweaks",
    ),
    "channel_pass": PhaseModelConfig(
        "channel_pass",
        ModelConfig("gpt-4o", temperature=0.6),
        "Channel-aware restructuring",
    ),
    "final_package": PhaseModelConfig(
        "final_package",
        ModelConfig("gpt-4o", temperature=0.7, max_tokens=8192),
        "Final QA and variant generation",
    ),
    "critic": PhaseModelConfig(
        "critic",
        ModelConfig("gpt-4.1", temperature=0.2),
        "Harsh rubric evaluation, low creativity",
    ),
}


def get_phase_config(phase: str) -> ModelConfig:
    """Get model config for a phase key."""
    if phase not in PHASE_MODEL_CONFIGS:
        raise ValueError(f"Unknown phase: {phase}")
    return PHASE_MODEL_CONFIGS[phase].config


def get_phase_rationale(phase: str) -> str:
    if phase not in PHASE_MODEL_CONFIGS:
        raise ValueError(f"Unknown phase: {phase}")
    return PHASE_MODEL_CONFIGS[phase].rationale
