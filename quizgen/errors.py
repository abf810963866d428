"""
Error taxonomy for the quiz pipeline.

Every error carries the pipeline stage it came from and a coarse,
user-safe message. The detailed message (str(error)) is for logs only.
"""

from typing import List, Optional


class QuizPipelineError(Exception):
    stage = "pipeline"
    public_message = "Quiz pipeline failed"


class PreprocessError(QuizPipelineError):
    """Kept for completeness; preprocessing is total and never raises it."""
    stage = "preprocess"
    public_message = "Failed to prepare document text"


class BackendError(QuizPipelineError):
    """The text backend answered with a non-success status or an unusable body."""
    stage = "generation"
    public_message = "Failed to generate quiz"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(QuizPipelineError):
    """Model reply contained no parsable JSON object."""
    stage = "validation"
    public_message = "Failed to generate quiz"


class SchemaError(ParseError):
    """JSON parsed, but has no `questions` list."""


class ValidationEmpty(QuizPipelineError):
    """Reply parsed but not a single question survived validation."""
    stage = "validation"
    public_message = "Failed to generate quiz"


class GenerationError(QuizPipelineError):
    """A batch exhausted its retries, or the request produced no questions at all."""
    stage = "generation"
    public_message = "Failed to generate quiz"

    def __init__(self, message: str, failed_batches: int = 0, total_batches: int = 0,
                 reasons: Optional[List[str]] = None):
        super().__init__(message)
        self.failed_batches = failed_batches
        self.total_batches = total_batches
        self.reasons = reasons or []


class RenderError(QuizPipelineError):
    stage = "render"
    public_message = "Failed to render quiz documents"


class ConfigurationError(QuizPipelineError, RuntimeError):
    """The service is missing a key or setting; retrying cannot help."""
    stage = "config"
    public_message = "Quiz service is not configured"


class RequestError(QuizPipelineError, ValueError):
    """Caller passed an unknown level or a non-positive question count."""
    stage = "request"
    public_message = "Invalid quiz request"
