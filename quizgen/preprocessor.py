"""
Step 1 — Content Preprocessor

Turns raw text extracted from a document into a bounded, prompt-ready subject:
- layout artifacts (anything but letters, digits, . , ? ! - and whitespace) become spaces
- whitespace runs collapse to one space
- output is capped, preferring to cut after the last full stop near the limit
"""

import re

from quizgen.config import MAX_CONTENT_LENGTH

# \w also matches "_", which is not a letter
_DISALLOWED_RE = re.compile(r"[^\w\s.,?!\-]|_")
_WHITESPACE_RE = re.compile(r"\s+")

# A sentence end is only used as the cut point if it lies in the last 20% of the limit
SENTENCE_CUT_RATIO = 0.8


def preprocess(raw: str, max_length: int = MAX_CONTENT_LENGTH) -> str:
    """Clean extracted text. Never raises; returns "" for empty input."""
    if not raw:
        return ""

    text = _DISALLOWED_RE.sub(" ", raw)
    text = _WHITESPACE_RE.sub(" ", text).strip()

    if len(text) <= max_length:
        return text

    text = text[:max_length]
    last_period = text.rfind(".")
    if last_period > max_length * SENTENCE_CUT_RATIO:
        text = text[: last_period + 1]
    return text.rstrip()
