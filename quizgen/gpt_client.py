"""
Text backends for the generation pipeline.

Used by:
  - question_generator.py   (Step 3)

Backends:
  - "openai"  → OpenAI Chat Completions via AsyncOpenAI   (model: GPT_MODEL, default gpt-4o-mini)
  - "gemini"  → Google Generative Language generateContent over httpx

Select with the QUIZ_BACKEND env var. Every backend maps a BackendRequest to a
BackendResponse and raises BackendError for non-success statuses and
unusable bodies; the caller treats all failures alike. A missing API key is
ConfigurationError instead, which the retry loop does not retry.
"""

import os
from typing import Optional

import httpx
import openai
from openai import AsyncOpenAI

from quizgen.config import (
    GEMINI_API_ENDPOINT,
    GEMINI_API_VERSION,
    GEMINI_MODEL,
    GPT_MODEL,
    QUIZ_BACKEND,
    REQUEST_TIMEOUT,
)
from quizgen.errors import BackendError, ConfigurationError
from quizgen.schemas import BackendRequest, BackendResponse

SYSTEM_PROMPT = "You are an expert quiz writer. Output only what is asked."


class TextBackend:
    """Request/response contract for a generative text model."""

    name = "base"

    async def complete(self, request: BackendRequest) -> BackendResponse:
        raise NotImplementedError


# ─── OpenAI ────────────────────────────────────────────────────────────────────

class OpenAIBackend(TextBackend):
    name = "openai"

    def __init__(self, client: Optional[AsyncOpenAI] = None, model: str = GPT_MODEL):
        self._client = client
        self.model = model

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            api_key = os.getenv("OPENAI_API_KEY")
            if not api_key:
                raise ConfigurationError(
                    "OPENAI_API_KEY is not set. Add it to your .env file."
                )
            # retries belong to the batch loop: one call per attempt
            self._client = AsyncOpenAI(api_key=api_key, max_retries=0)
        return self._client

    async def complete(self, request: BackendRequest) -> BackendResponse:
        client = self._get_client()
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": request.prompt},
                ],
                temperature=request.temperature,
                max_tokens=request.max_output_tokens,
            )
        except openai.APIStatusError as e:
            raise BackendError(f"OpenAI request failed with status {e.status_code}", e.status_code) from e
        except openai.APIError as e:
            raise BackendError(f"OpenAI request failed: {type(e).__name__}") from e

        if not response.choices:
            raise BackendError("OpenAI response has no choices")
        content = response.choices[0].message.content
        if not content:
            raise BackendError("OpenAI response has empty content")
        return BackendResponse(text=content)


# ─── Gemini ────────────────────────────────────────────────────────────────────

class GeminiBackend(TextBackend):
    name = "gemini"

    def __init__(
        self,
        api_key: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        model: str = GEMINI_MODEL,
        endpoint: str = GEMINI_API_ENDPOINT,
        api_version: str = GEMINI_API_VERSION,
        timeout: Optional[float] = REQUEST_TIMEOUT,
    ):
        self.api_key = api_key or os.getenv("GEMINI_API_KEY")
        if not self.api_key:
            raise ConfigurationError(
                "GEMINI_API_KEY is not set. Add it to your .env file."
            )
        self._http = http_client
        self.timeout = timeout
        self.url = f"{endpoint.rstrip('/')}/{api_version}/models/{model}:generateContent"

    async def complete(self, request: BackendRequest) -> BackendResponse:
        body = {
            "contents": [{"parts": [{"text": request.prompt}]}],
            "generationConfig": {
                "temperature": request.temperature,
                "maxOutputTokens": request.max_output_tokens,
            },
        }
        try:
            if self._http is not None:
                response = await self._http.post(self.url, params={"key": self.api_key}, json=body)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as http:
                    response = await http.post(self.url, params={"key": self.api_key}, json=body)
        except httpx.HTTPError as e:
            raise BackendError(f"Gemini transport error: {type(e).__name__}") from e

        if not response.is_success:
            raise BackendError(
                f"Gemini request failed with status {response.status_code}", response.status_code
            )

        try:
            data = response.json()
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise BackendError("Invalid response format from Gemini API") from e
        if not isinstance(text, str) or not text:
            raise BackendError("Gemini response has empty text")
        return BackendResponse(text=text)


# ─── Factory ───────────────────────────────────────────────────────────────────

# Lazy singleton
_backend: Optional[TextBackend] = None


def create_backend(name: str) -> TextBackend:
    if name == "openai":
        return OpenAIBackend()
    if name == "gemini":
        return GeminiBackend()
    raise ValueError(f"Unknown QUIZ_BACKEND '{name}' (expected 'openai' or 'gemini')")


def get_backend() -> TextBackend:
    global _backend
    if _backend is None:
        _backend = create_backend(QUIZ_BACKEND)
    return _backend
