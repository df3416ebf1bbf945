"""Phase executor - one structured generation call with transient retry."""

import logging
import time
from collections.abc import Callable

from pydantic import BaseModel

from ..clients.llm import LLMClient
from ..config import EXECUTOR_BACKOFF_SECONDS, EXECUTOR_MAX_RETRIES, ModelConfig
from ..errors import GenerationError, SchemaError, TransientCallError
from ..models.artifacts import parse_artifact
from ..utils import truncate

logger = logging.getLogger(__name__)


class PhaseExecutor:
    """Call the LLM once per phase, retrying only call-level failures."""

    def __init__(
        self,
        llm: LLMClient,
        max_retries: int = EXECUTOR_MAX_RETRIES,
        backoff_seconds: float = EXECUTOR_BACKOFF_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.llm = llm
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds
        self.sleep = sleep

    def execute(
        self,
        config: ModelConfig,
        schema: type[BaseModel],
        system_prompt: str,
        prompt: str,
    ) -> BaseModel:
        """
        Run one generation and parse it into `schema`.

        Total tries = 1 + max_retries. Schema failures are not retried.

        Raises:
            SchemaError: Output could not be parsed into schema.
            GenerationError: Retries exhausted (chained to the last failure)
                or the client rejected the request outright.
        """
        label = schema.__name__
        last_error: TransientCallError | None = None

        for attempt in range(self.max_retries + 1):
            try:
                raw = self.llm.generate(config, schema, system_prompt, prompt, label=label)
            except TransientCallError as e:
                last_error = e
                if attempt < self.max_retries:
                    logger.warning(f"{label} attempt {attempt + 1} failed: {e}. Retrying in {self.backoff_seconds}s...")
                    self.sleep(self.backoff_seconds)
                continue

            result = parse_artifact(schema, raw)
            if not result.ok:
                raise SchemaError(f"{label}: {result.reason}", raw_output=raw)
            if attempt > 0:
                logger.info(f"{label} succeeded on attempt {attempt + 1}")
            return result.artifact

        raise GenerationError(
            f"{label} failed after {self.max_retries + 1} attempts: {truncate(str(last_error), 200)}"
        ) from last_error
