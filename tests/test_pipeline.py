import asyncio

import pytest

from quizgen.config import PipelineSettings
from quizgen.errors import ConfigurationError, GenerationError, RequestError
from quizgen.gpt_client import TextBackend
from quizgen.pipeline import QuizPipeline
from quizgen.schemas import GenerationRequest, Level
from conftest import FakeBackend


def test_photosynthesis_scenario(topic_request, fast_settings):
    backend = FakeBackend(prefix="Photosynthesis question")
    result = asyncio.run(QuizPipeline(backend, fast_settings).generate_from_topic(topic_request))

    assert len(backend.prompts) == 1
    assert "exactly 5 multiple choice" in backend.prompts[0]

    qs = result.questions
    assert qs.delivered == 5 and qs.requested == 5
    assert qs.total_batches == 1
    assert not qs.is_partial
    for q in qs.questions:
        assert len(q.options) == 4
        assert 0 <= q.correct_answer_index < 4

    for n in range(1, 6):
        assert f"{n}. Photosynthesis question {n}?".encode() in result.quiz_document
    assert b"Correct answer" not in result.quiz_document
    assert b"Correct answer" in result.answer_document


def test_large_request_is_split_and_kept_in_order(fast_settings):
    backend = FakeBackend()
    request = GenerationRequest(subject_text="Cells", level=Level.ADVANCED, question_count=45)
    result = asyncio.run(QuizPipeline(backend, fast_settings).generate_from_topic(request))

    assert len(backend.prompts) == 3
    assert result.questions.delivered == 45
    texts = [q.text for q in result.questions.questions]
    # batch sizes 20, 20, 5 → each batch restarts numbering at 1
    assert texts[0] == texts[20] == texts[40] == "Question 1?"
    assert texts[19] == texts[39] == "Question 20?"
    assert texts[44] == "Question 5?"


def test_one_failed_batch_out_of_three_gives_partial_result(fast_settings):
    backend = FakeBackend(fail_sizes={5})
    request = GenerationRequest(subject_text="Cells", level=Level.BEGINNER, question_count=45)
    result = asyncio.run(QuizPipeline(backend, fast_settings).generate_from_topic(request))

    qs = result.questions
    assert qs.delivered == 40
    assert qs.requested == 45
    assert [(b.start_index, b.size) for b in qs.failed_batches] == [(40, 5)]
    assert result.quiz_document.startswith(b"%PDF")
    # the failing batch was retried: 2 good calls + 4 attempts for the bad one
    assert len(backend.prompts) == 6


def test_all_batches_failing_raises_and_renders_nothing(fast_settings, monkeypatch):
    rendered = []
    monkeypatch.setattr("quizgen.pipeline.render_documents", lambda qs: rendered.append(qs))

    backend = FakeBackend(fail_sizes={20, 5})
    request = GenerationRequest(subject_text="Cells", level=Level.BEGINNER, question_count=25)
    with pytest.raises(GenerationError) as info:
        asyncio.run(QuizPipeline(backend, fast_settings).generate_from_topic(request))

    assert info.value.failed_batches == 2
    assert info.value.total_batches == 2
    assert rendered == []


def test_document_mode_preprocesses_text_first(fast_settings):
    backend = FakeBackend()
    raw = "Chapter 1 ■ The   cell\n\nmembrane • controls transport."
    result = asyncio.run(
        QuizPipeline(backend, fast_settings).generate_from_document_text(raw, "intermediate", 3)
    )
    assert "Chapter 1 The cell membrane controls transport." in backend.prompts[0]
    assert "intermediate level" in backend.prompts[0]
    assert result.questions.delivered == 3


def test_document_mode_caps_subject_length(fast_settings):
    backend = FakeBackend()
    settings = fast_settings.model_copy(update={"max_content_length": 50})
    asyncio.run(QuizPipeline(backend, settings).generate_from_document_text("word " * 100, Level.BEGINNER, 1))
    subject = backend.prompts[0].split("---\n")[1].strip()
    assert len(subject) <= 50


def test_document_mode_with_no_usable_text_fails_without_calling_backend(fast_settings):
    backend = FakeBackend()
    with pytest.raises(GenerationError):
        asyncio.run(QuizPipeline(backend, fast_settings).generate_from_document_text("©©© ™", Level.BEGINNER, 5))
    assert backend.prompts == []


def test_cancelling_the_request_cancels_in_flight_batches():
    class HangingBackend(TextBackend):
        name = "hanging"
        started = 0
        cancelled = 0

        async def complete(self, request):
            HangingBackend.started += 1
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                HangingBackend.cancelled += 1
                raise

    settings = PipelineSettings(stagger_delay=0, retry_delay=0, request_timeout=30)
    request = GenerationRequest(subject_text="Cells", level=Level.BEGINNER, question_count=45)

    async def scenario():
        task = asyncio.create_task(QuizPipeline(HangingBackend(), settings).generate_from_topic(request))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())
    assert HangingBackend.started == 3
    assert HangingBackend.cancelled == 3


@pytest.mark.parametrize("level,count", [
    ("expert", 5),
    (Level.BEGINNER, 0),
    (Level.BEGINNER, -3),
    (Level.BEGINNER, "5"),
])
def test_document_mode_rejects_bad_level_or_count(fast_settings, level, count):
    backend = FakeBackend()
    with pytest.raises(RequestError) as info:
        asyncio.run(QuizPipeline(backend, fast_settings).generate_from_document_text("Cells divide.", level, count))
    assert info.value.stage == "request"
    assert backend.prompts == []


def test_missing_backend_key_fails_fast_without_retries(fast_settings):
    class UnconfiguredBackend(TextBackend):
        name = "unconfigured"
        calls = 0

        async def complete(self, request):
            UnconfiguredBackend.calls += 1
            raise ConfigurationError("OPENAI_API_KEY is not set")

    request = GenerationRequest(subject_text="Cells", level=Level.BEGINNER, question_count=45)
    with pytest.raises(ConfigurationError):
        asyncio.run(QuizPipeline(UnconfiguredBackend(), fast_settings).generate_from_topic(request))
    # one call per batch, none repeated
    assert UnconfiguredBackend.calls == 3
