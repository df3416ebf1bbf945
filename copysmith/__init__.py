"""copysmith - multi-phase copy generation with rule validation and regeneration."""

from .engine import PipelineEngine
from .models import PipelineEvent, PipelineResult, RunOptions, TaskSpec

__all__ = ["PipelineEngine", "PipelineEvent", "PipelineResult", "RunOptions", "TaskSpec"]
