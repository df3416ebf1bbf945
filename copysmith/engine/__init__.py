"""Pipeline engine."""

from .engine import PHASE_THINKING, PipelineEngine

__all__ = ["PHASE_THINKING", "PipelineEngine"]
