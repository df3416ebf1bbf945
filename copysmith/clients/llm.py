"""Generic LLM client with provider-agnostic interface."""

import logging

import openai
from openai import OpenAI
from pydantic import BaseModel

from ..config import ModelConfig
from ..errors import GenerationError, TransientCallError

logger = logging.getLogger(__name__)

# Failures worth another try: the request never produced an answer
TRANSIENT_ERRORS = (
    openai.APIConnectionError,   # includes APITimeoutError
    openai.RateLimitError,
    openai.InternalServerError,
)


class LLMClient:
    """Generic LLM client. Currently uses OpenAI, interface is provider-agnostic."""

    def __init__(self, api_key: str | None = None, client: OpenAI | None = None):
        self._client = client or OpenAI(api_key=api_key)
        self.total_input_tokens = 0
        self.total_output_tokens = 0

    def generate(
        self,
        config: ModelConfig,
        schema: type[BaseModel],
        system_prompt: str,
        prompt: str,
        label: str = "",
    ) -> str:
        """Make one structured LLM call and return the raw JSON text.

        Args:
            config: Model id, temperature and token cap.
            schema: Pydantic model describing the expected JSON object.
            system_prompt: System/developer prompt.
            prompt: User message.
            label: Optional label for logging token usage.

        Raises:
            TransientCallError: Network, rate limit or server failure.
            GenerationError: Any other API rejection.
        """
        try:
            response = self._client.responses.create(
                model=config.model,
                input=[
                    {"role": "developer", "content": system_prompt},
                    {"role": "user", "content": prompt},
                ],
                text={
                    "format": {
                        "type": "json_schema",
                        "name": schema.__name__,
                        "schema": schema.model_json_schema(),
                        "strict": False,
                    }
                },
                temperature=config.temperature,
                max_output_tokens=config.max_tokens,
            )
        except TRANSIENT_ERRORS as e:
            raise TransientCallError(f"{config.model} call failed: {e}") from e
        except openai.APIError as e:
            raise GenerationError(f"{config.model} rejected request: {e}") from e

        # Track tokens
        usage = response.usage
        if usage is not None:
            self.total_input_tokens += usage.input_tokens
            self.total_output_tokens += usage.output_tokens
            if label:
                logger.info(f"{label}: input={usage.input_tokens}, output={usage.output_tokens}")

        return (response.output_text or "").strip()

    def get_token_totals(self) -> tuple[int, int]:
        """Return accumulated (input, output) tokens."""
        return self.total_input_tokens, self.total_output_tokens
