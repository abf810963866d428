"""
Step 7 — Pipeline Orchestrator

Public entry points:
  generate_from_topic(request)                                → QuizResult
  generate_from_document_text(raw_text, level, question_count) → QuizResult

Both run: plan → generate batches concurrently → aggregate → render ×2.
No retries happen here; batch retries belong to the question generator. The
first hard failure (no questions at all, or rendering) propagates unchanged.
"""

import logging
from typing import Optional, Union

from quizgen.aggregator import aggregate
from quizgen.config import PipelineSettings
from quizgen.errors import GenerationError, RequestError
from quizgen.gpt_client import TextBackend, get_backend
from quizgen.paper_exporter import render_documents
from quizgen.planner import plan
from quizgen.preprocessor import preprocess
from quizgen.question_generator import generate_batch
from quizgen.scheduler import run_batches
from quizgen.schemas import Batch, GenerationRequest, Level, QuestionSet, QuizResult

log = logging.getLogger("generation.pipeline")


class QuizPipeline:
    def __init__(self, backend: TextBackend, settings: Optional[PipelineSettings] = None):
        self.backend = backend
        self.settings = settings or PipelineSettings()

    async def generate_questions(self, request: GenerationRequest) -> QuestionSet:
        """Plan, run every batch to completion, and join the results."""
        batches = plan(request.question_count, self.settings.max_batch_size)

        async def _worker(batch: Batch):
            return await generate_batch(batch, request, self.backend, self.settings)

        outcomes = await run_batches(
            batches,
            _worker,
            max_concurrency=self.settings.max_concurrency,
            stagger_delay=self.settings.stagger_delay,
        )
        return aggregate(outcomes)

    async def generate_from_topic(self, request: GenerationRequest) -> QuizResult:
        log.info(
            f"[QUIZ] {self.backend.name}: {request.question_count} {request.level.value} "
            f"question(s) on '{request.subject_text[:80]}'"
        )
        question_set = await self.generate_questions(request)
        quiz_document, answer_document = render_documents(question_set.questions)
        return QuizResult(
            questions=question_set,
            quiz_document=quiz_document,
            answer_document=answer_document,
        )

    async def generate_from_document_text(
        self,
        raw_text: str,
        level: Union[Level, str] = Level.INTERMEDIATE,
        question_count: int = 5,
    ) -> QuizResult:
        """Clean raw document text and quiz on it. Bad level or count → RequestError."""
        try:
            level = Level(level)
        except ValueError:
            raise RequestError(f"Unknown level {level!r}") from None
        if isinstance(question_count, bool) or not isinstance(question_count, int) or question_count < 1:
            raise RequestError(f"question_count must be a positive integer, got {question_count!r}")

        subject = preprocess(raw_text, self.settings.max_content_length)
        if not subject:
            raise GenerationError("Document text is empty after preprocessing")
        log.info(f"[QUIZ] document text {len(raw_text or '')} → {len(subject)} chars")
        request = GenerationRequest(
            subject_text=subject,
            level=level,
            question_count=question_count,
        )
        return await self.generate_from_topic(request)


# ─── Module-level helpers (default backend + env settings) ─────────────────────

async def generate_from_topic(request: GenerationRequest) -> QuizResult:
    return await QuizPipeline(get_backend()).generate_from_topic(request)


async def generate_from_document_text(
    raw_text: str,
    level: Union[Level, str] = Level.INTERMEDIATE,
    question_count: int = 5,
) -> QuizResult:
    return await QuizPipeline(get_backend()).generate_from_document_text(raw_text, level, question_count)
