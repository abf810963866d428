"""
Step 4 — Response Validator

Model replies are untrusted text. This module:
- strips markdown code fences and pulls out the first balanced JSON object
- parses it into a tagged ParseResult (ParseOk | ParseFailure)
- converts each raw candidate into a strict Question, silently dropping the rest
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, List, Literal, Optional, Union

from pydantic import ValidationError

from quizgen.errors import ParseError, SchemaError
from quizgen.schemas import Question

log = logging.getLogger(__name__)

CODE_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


# ─── Result types ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ParseOk:
    candidates: List[Any] = field(default_factory=list)


@dataclass(frozen=True)
class ParseFailure:
    reason: str
    kind: Literal["parse", "schema"] = "parse"

    def to_error(self) -> ParseError:
        if self.kind == "schema":
            return SchemaError(self.reason)
        return ParseError(self.reason)


ParseResult = Union[ParseOk, ParseFailure]


# ─── JSON extraction ───────────────────────────────────────────────────────────

def extract_json_object(raw: str) -> Optional[str]:
    """
    Return the first top-level {...} substring of raw, or None.

    Braces inside JSON strings are ignored, so prose or stray fences around the
    object do not matter.
    """
    text = CODE_FENCE_RE.sub("", raw or "")
    depth = 0
    start = -1
    in_str = False
    esc = False

    for i, ch in enumerate(text):
        if in_str:
            if esc:
                esc = False
            elif ch == "\\":
                esc = True
            elif ch == '"':
                in_str = False
            continue
        if ch == '"':
            # quotes only matter once we are inside an object
            if depth > 0:
                in_str = True
        elif ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}":
            if depth > 0:
                depth -= 1
                if depth == 0:
                    return text[start: i + 1]
    return None


def parse_response(raw: str) -> ParseResult:
    """Parse a model reply into its list of raw question candidates."""
    obj_text = extract_json_object(raw)
    if obj_text is None:
        return ParseFailure(f"No JSON object found: {(raw or '')[:200]!r}")

    try:
        data = json.loads(obj_text)
    except json.JSONDecodeError as e:
        return ParseFailure(f"Invalid JSON object: {e}")

    questions = data.get("questions") if isinstance(data, dict) else None
    if questions is None:
        return ParseFailure("Response has no 'questions' field", kind="schema")
    if not isinstance(questions, list):
        return ParseFailure(
            f"'questions' must be a list, got {type(questions).__name__}", kind="schema"
        )
    return ParseOk(candidates=questions)


# ─── Candidate validation ──────────────────────────────────────────────────────

def _to_question(candidate: Any) -> Optional[Question]:
    if not isinstance(candidate, dict):
        return None
    explanation = candidate.get("explanation")
    try:
        return Question(
            text=candidate.get("question"),
            options=candidate.get("options"),
            correct_answer_index=candidate.get("correctAnswer"),
            explanation=explanation if isinstance(explanation, str) else None,
        )
    except ValidationError:
        return None


def validate_candidates(candidates: List[Any]) -> List[Question]:
    """Keep only well-formed candidates, in their original order. Never raises."""
    questions = []
    for candidate in candidates:
        question = _to_question(candidate)
        if question is not None:
            questions.append(question)
    dropped = len(candidates) - len(questions)
    if dropped:
        log.debug("validator: dropped %d of %d malformed candidate(s)", dropped, len(candidates))
    return questions


def validate(raw: str) -> List[Question]:
    """
    Turn one model reply into validated questions.

    Raises ParseError when no JSON object can be read, SchemaError when the
    object has no `questions` list. An empty result is returned as-is; the
    caller decides whether that is a failure.
    """
    result = parse_response(raw)
    if isinstance(result, ParseFailure):
        raise result.to_error()
    return validate_candidates(result.candidates)
