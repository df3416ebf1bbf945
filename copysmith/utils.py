import json
import logging
import uuid

from pydantic import BaseModel

from .config import COPYSMITH_LOG_LEVEL


def configure_logging(level: str | None = None) -> None:
    """Basic console logging for entry points."""
    logging.basicConfig(
        level=(level or COPYSMITH_LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def new_run_id() -> str:
    return uuid.uuid4().hex[:12]


def to_json(value, indent: int | None = 2) -> str:
    """Serialize a pydantic model (or plain JSON value) for prompts and storage."""
    if isinstance(value, BaseModel):
        return value.model_dump_json(indent=indent)
    return json.dumps(value, indent=indent, ensure_ascii=False)


def preview(artifact: BaseModel, max_keys: int = 3) -> str:
    """Short artifact summary: first few field names.

    Example: CreativeBrief -> "reader_model, single_job, stance..."
    """
    skip = ("missing_inputs", "notes")
    keys = [k for k in type(artifact).model_fields if k not in skip][:max_keys]
    return ", ".join(keys) + "..."


def truncate(text: str, length: int = 50) -> str:
    if len(text) <= length:
        return text
    return text[:length] + "..."
