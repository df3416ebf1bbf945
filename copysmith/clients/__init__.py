"""Clients for external services."""

from .llm import LLMClient
from .store import ArtifactStore, JsonFileStore, WebhookStore

__all__ = ["LLMClient", "ArtifactStore", "JsonFileStore", "WebhookStore"]
