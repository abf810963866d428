"""
Step 3 — Question Generation Client

One model call per Batch. Each attempt:
  prompt → backend (bounded by a timeout) → validator → ≥1 Question or failure

Any failure (transport, status, timeout, parse, schema, zero valid questions)
is retried up to `max_retries` more times with a fixed delay. A batch that
runs out of attempts comes back as a failed BatchOutcome instead of raising,
so sibling batches keep going.
"""

import asyncio
import logging
from typing import List

from quizgen.config import PipelineSettings
from quizgen.errors import ConfigurationError, ValidationEmpty
from quizgen.gpt_client import TextBackend
from quizgen.schemas import Batch, BackendRequest, BatchOutcome, GenerationRequest, Question
from quizgen.validator import validate

log = logging.getLogger("generation.pipeline")


# ─── MCQ Generation Prompt ─────────────────────────────────────────────────────

MCQ_BATCH_PROMPT = """Create exactly {count} multiple choice questions about the subject below, at {level} level.

SUBJECT:
---
{subject}
---

Each question must:
- be clear and concise
- have exactly 4 options
- have exactly one correct answer
- include a short explanation of why the correct answer is right

OUTPUT FORMAT — respond with ONLY a single valid JSON object, no markdown, no commentary:
{{
  "questions": [
    {{
      "question": "<question text>",
      "options": ["<option 1>", "<option 2>", "<option 3>", "<option 4>"],
      "correctAnswer": <index of the correct option, 0-3>,
      "explanation": "<why this answer is correct>"
    }}
  ]
}}
"""


def build_prompt(batch: Batch, request: GenerationRequest) -> str:
    return MCQ_BATCH_PROMPT.format(
        count=batch.size,
        level=request.level.value,
        subject=request.subject_text,
    )


# ─── Single attempt ────────────────────────────────────────────────────────────

async def request_batch(
    batch: Batch,
    request: GenerationRequest,
    backend: TextBackend,
    settings: PipelineSettings,
) -> List[Question]:
    """One backend call for `batch`. Raises on every kind of failure."""
    backend_request = BackendRequest(
        prompt=build_prompt(batch, request),
        max_output_tokens=settings.max_output_tokens,
        temperature=settings.temperature,
    )
    response = await asyncio.wait_for(
        backend.complete(backend_request),
        timeout=settings.request_timeout,
    )
    questions = validate(response.text)
    if not questions:
        raise ValidationEmpty(f"No valid questions in response for batch {batch.label}")

    # The model sometimes over-delivers; a batch never contributes more than its size
    return questions[: batch.size]


# ─── Retry loop ────────────────────────────────────────────────────────────────

async def generate_batch(
    batch: Batch,
    request: GenerationRequest,
    backend: TextBackend,
    settings: PipelineSettings,
) -> BatchOutcome:
    """
    Run the bounded retry loop for one batch.

    Returns a successful outcome as soon as an attempt yields questions, or a
    failed outcome after `settings.max_attempts` attempts. Cancellation
    (asyncio.CancelledError) is never caught, so a cancelled caller stops both
    in-flight calls and pending retry delays. ConfigurationError propagates
    on the first attempt.
    """
    last_error = ""
    for attempt in range(1, settings.max_attempts + 1):
        try:
            questions = await request_batch(batch, request, backend, settings)
        except ConfigurationError:
            raise
        except asyncio.TimeoutError:
            last_error = f"timed out after {settings.request_timeout:g}s"
        except Exception as e:
            last_error = f"{type(e).__name__}: {e}"
        else:
            log.info(
                f"[BATCH {batch.label}] OK — {len(questions)}/{batch.size} question(s) "
                f"on attempt {attempt}"
            )
            return BatchOutcome(batch=batch, questions=questions, attempt=attempt)

        log.warning(f"[BATCH {batch.label}] attempt {attempt}/{settings.max_attempts} failed: {last_error}")
        if attempt < settings.max_attempts:
            await asyncio.sleep(settings.retry_delay)

    log.error(f"[BATCH {batch.label}] giving up after {settings.max_attempts} attempt(s)")
    return BatchOutcome(
        batch=batch,
        attempt=settings.max_attempts,
        failed=True,
        error=last_error[:300],
    )
