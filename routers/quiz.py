"""
Quiz Router — /quiz

Thin HTTP adapter over the quiz generation pipeline.
Endpoints:
  POST /quiz                — generate a quiz from a topic
  POST /quiz/document       — generate a quiz from pre-extracted document text
  POST /quiz/pdf/generate   — render a question list as quiz.pdf or answers.pdf
"""

import base64
import logging
from io import BytesIO

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from quizgen.errors import ConfigurationError, GenerationError, RenderError, RequestError
from quizgen.gpt_client import get_backend
from quizgen.paper_exporter import render_answer_document, render_quiz_document
from quizgen.pipeline import QuizPipeline
from quizgen.schemas import (
    DocumentQuizRequest,
    GenerationRequest,
    QuizResponse,
    QuizResult,
    RenderRequest,
    TopicQuizRequest,
)

router = APIRouter(prefix="/quiz", tags=["quiz"])

log = logging.getLogger("generation.pipeline")
logging.basicConfig(level=logging.INFO, format="%(asctime)s  %(levelname)s  %(message)s")


def get_pipeline() -> QuizPipeline:
    try:
        return QuizPipeline(get_backend())
    except ConfigurationError as e:
        _raise_http(e, "QUIZ")


def _to_response(result: QuizResult) -> QuizResponse:
    qs = result.questions
    return QuizResponse(
        questions=qs.questions,
        requested=qs.requested,
        delivered=qs.delivered,
        failed_batches=len(qs.failed_batches),
        quiz_document=base64.b64encode(result.quiz_document).decode("ascii"),
        answer_document=base64.b64encode(result.answer_document).decode("ascii"),
    )


def _raise_http(e: Exception, where: str):
    """Map pipeline errors to coarse HTTP errors; details stay in the log."""
    if isinstance(e, GenerationError):
        log.error(
            f"[{where}] generation failed — {e.failed_batches}/{e.total_batches} batch(es) failed: {e}"
        )
        raise HTTPException(status_code=502, detail=e.public_message)
    if isinstance(e, RenderError):
        log.error(f"[{where}] rendering failed: {e}")
        raise HTTPException(status_code=500, detail=e.public_message)
    if isinstance(e, ConfigurationError):
        log.error(f"[{where}] service misconfigured: {e}")
        raise HTTPException(status_code=500, detail=e.public_message)
    if isinstance(e, RequestError):
        log.warning(f"[{where}] rejected request: {e}")
        raise HTTPException(status_code=422, detail=e.public_message)
    raise e


# ─── Topic mode ────────────────────────────────────────────────────────────────

@router.post("", response_model=QuizResponse)
async def generate_quiz(
    request: TopicQuizRequest,
    pipeline: QuizPipeline = Depends(get_pipeline),
):
    """
    **Generate a multiple-choice quiz about a topic.**

    Returns the validated questions, how many were requested vs delivered,
    and both PDFs (quiz paper + answer key) as base64.
    """
    try:
        result = await pipeline.generate_from_topic(GenerationRequest(
            subject_text=request.topic,
            level=request.level,
            question_count=request.number_of_questions,
        ))
    except (GenerationError, RenderError, ConfigurationError, RequestError) as e:
        _raise_http(e, "QUIZ")
    return _to_response(result)


# ─── Document mode ─────────────────────────────────────────────────────────────

@router.post("/document", response_model=QuizResponse)
async def generate_quiz_from_document(
    request: DocumentQuizRequest,
    pipeline: QuizPipeline = Depends(get_pipeline),
):
    """
    **Generate a quiz from text already extracted from a document.**

    The text is cleaned and capped before it is used as the quiz subject.
    """
    try:
        result = await pipeline.generate_from_document_text(
            request.text,
            level=request.level,
            question_count=request.number_of_questions,
        )
    except (GenerationError, RenderError, ConfigurationError, RequestError) as e:
        _raise_http(e, "QUIZ DOCUMENT")
    return _to_response(result)


# ─── PDF export ────────────────────────────────────────────────────────────────

@router.post("/pdf/generate")
async def generate_pdf(request: RenderRequest):
    """Render caller-supplied questions as the quiz paper or the answer key."""
    if not request.questions:
        raise HTTPException(status_code=400, detail="Invalid questions data")

    try:
        if request.type == "answers":
            pdf = render_answer_document(request.questions)
        else:
            pdf = render_quiz_document(request.questions)
    except RenderError as e:
        log.error(f"[PDF] rendering failed: {e}")
        raise HTTPException(status_code=422, detail=e.public_message)

    filename = "answers.pdf" if request.type == "answers" else "quiz.pdf"
    return StreamingResponse(
        BytesIO(pdf),
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
