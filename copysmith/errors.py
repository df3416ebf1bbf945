"""Exception taxonomy for the copy pipeline."""


class CopysmithError(Exception):
    """Base exception for copysmith."""
    pass


class GenerationError(CopysmithError):
    """Generation call failed (after retries) or returned unusable output."""
    pass


class TransientCallError(GenerationError):
    """Call-level failure (network, rate limit, server error). Retried."""
    pass


class SchemaError(GenerationError):
    """Output could not be coerced into the declared schema. Never retried."""
    def __init__(self, message: str, raw_output: str = ""):
        self.raw_output = raw_output
        super().__init__(message)


class PipelineError(CopysmithError):
    """A phase failed fatally; the run halts."""
    def __init__(self, message: str, phase: int, phase_name: str, cause: Exception | None = None):
        self.phase = phase
        self.phase_name = phase_name
        self.cause = cause
        super().__init__(message)


class RegenerationExhaustedError(CopysmithError):
    """Strict mode only: a validated phase ran out of attempts."""
    def __init__(self, message: str, violations: list | None = None):
        self.violations = violations or []
        super().__init__(message)
