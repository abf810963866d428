import json
import re

import pytest

from quizgen.config import PipelineSettings
from quizgen.gpt_client import TextBackend
from quizgen.schemas import BackendResponse, GenerationRequest, Level, Question

COUNT_RE = re.compile(r"Create exactly (\d+) multiple choice")


def make_candidate(n, correct=1, explanation="Because."):
    return {
        "question": f"Question {n}?",
        "options": [f"Option {n}a", f"Option {n}b", f"Option {n}c", f"Option {n}d"],
        "correctAnswer": correct,
        "explanation": explanation,
    }


def make_reply(count, prefix="Question", fenced=False):
    """A well-formed model reply holding `count` questions."""
    questions = [make_candidate(i + 1) for i in range(count)]
    for q in questions:
        q["question"] = q["question"].replace("Question", prefix)
    body = json.dumps({"questions": questions})
    if fenced:
        return f"Here you go:\n```json\n{body}\n```"
    return body


def requested_count(prompt):
    return int(COUNT_RE.search(prompt).group(1))


class FakeBackend(TextBackend):
    """Answers every prompt with as many questions as it asks for."""

    name = "fake"

    def __init__(self, prefix="Question", fail_sizes=()):
        self.prefix = prefix
        self.fail_sizes = set(fail_sizes)
        self.prompts = []

    async def complete(self, request):
        self.prompts.append(request.prompt)
        count = requested_count(request.prompt)
        if count in self.fail_sizes:
            raise RuntimeError("backend unavailable")
        return BackendResponse(text=make_reply(count, self.prefix))


class ScriptedBackend(TextBackend):
    """Plays back a list of replies; Exception items are raised instead."""

    name = "scripted"

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = 0

    async def complete(self, request):
        reply = self.replies[min(self.calls, len(self.replies) - 1)]
        self.calls += 1
        if isinstance(reply, Exception):
            raise reply
        return BackendResponse(text=reply)


@pytest.fixture
def fast_settings():
    """No waiting between attempts or launches."""
    return PipelineSettings(retry_delay=0, stagger_delay=0, request_timeout=5)


@pytest.fixture
def sample_questions():
    return [
        Question(
            text=f"Question {n}?",
            options=[f"Option {n}a", f"Option {n}b", f"Option {n}c", f"Option {n}d"],
            correct_answer_index=n % 4,
            explanation=f"Explanation {n}" if n % 2 else None,
        )
        for n in range(1, 6)
    ]


@pytest.fixture
def topic_request():
    return GenerationRequest(subject_text="Photosynthesis", level=Level.BEGINNER, question_count=5)
