"""
Pipeline configuration.

Every knob is read from the environment (a .env file is loaded by the app
entry point). PipelineSettings snapshots the values for one pipeline so
callers and tests can override individual fields.
"""

import os

from pydantic import BaseModel, Field


# ── Backend ────────────────────────────────────────────────────────────────────
QUIZ_BACKEND = os.getenv("QUIZ_BACKEND", "openai")

GPT_MODEL = os.getenv("GPT_MODEL", "gpt-4o-mini")

GEMINI_API_ENDPOINT = os.getenv("GEMINI_API_ENDPOINT", "https://generativelanguage.googleapis.com")
GEMINI_API_VERSION = os.getenv("GEMINI_API_VERSION", "v1beta")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")

# ── Batching / retries ─────────────────────────────────────────────────────────
MAX_BATCH_SIZE = int(os.getenv("QUIZ_MAX_BATCH_SIZE", "20"))
MAX_RETRIES = int(os.getenv("QUIZ_MAX_RETRIES", "3"))
RETRY_DELAY = float(os.getenv("QUIZ_RETRY_DELAY", "2.0"))          # seconds
STAGGER_DELAY = float(os.getenv("QUIZ_STAGGER_DELAY", "0.5"))      # seconds between launches
REQUEST_TIMEOUT = float(os.getenv("QUIZ_REQUEST_TIMEOUT", "60"))   # seconds per call
MAX_CONCURRENCY = int(os.getenv("QUIZ_MAX_CONCURRENCY", "5"))

# ── Model output ───────────────────────────────────────────────────────────────
MAX_OUTPUT_TOKENS = int(os.getenv("QUIZ_MAX_OUTPUT_TOKENS", "5000"))
TEMPERATURE = float(os.getenv("QUIZ_TEMPERATURE", "0.7"))

# ── Input limits ───────────────────────────────────────────────────────────────
MAX_CONTENT_LENGTH = int(os.getenv("QUIZ_MAX_CONTENT_LENGTH", "5000"))
MAX_QUESTIONS = int(os.getenv("QUIZ_MAX_QUESTIONS", "100"))


class PipelineSettings(BaseModel):
    """Tunables for one QuizPipeline instance. Defaults come from the environment."""
    max_batch_size: int = Field(MAX_BATCH_SIZE, ge=1)
    max_retries: int = Field(MAX_RETRIES, ge=0)
    retry_delay: float = Field(RETRY_DELAY, ge=0)
    stagger_delay: float = Field(STAGGER_DELAY, ge=0)
    request_timeout: float = Field(REQUEST_TIMEOUT, gt=0)
    max_concurrency: int = Field(MAX_CONCURRENCY, ge=1)
    max_output_tokens: int = Field(MAX_OUTPUT_TOKENS, ge=1)
    temperature: float = Field(TEMPERATURE, ge=0, le=2)
    max_content_length: int = Field(MAX_CONTENT_LENGTH, ge=1)

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1
