"""Model provider calls (Gemini + Ollama) for the safety lookups."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel

from aparajita.core.config import settings
from aparajita.core.errors import LookupUnavailable

logger = logging.getLogger(__name__)

PROVIDERS = {"gemini", "ollama"}


class AIServiceError(LookupUnavailable):
    """Raised when the provider cannot be reached or answers with nothing usable."""


def complete(provider: str, prompt: str, response_model: type[BaseModel]) -> str | dict[str, Any]:
    """Send one JSON-mode prompt and return the raw answer.

    Gemini may hand back an already parsed object; Ollama always returns text.
    Validation is left to the caller.
    """
    provider_name = provider.strip().lower()
    if provider_name == "gemini":
        return _call_gemini(prompt, response_model)
    if provider_name == "ollama":
        return _call_ollama(prompt, response_model)
    raise AIServiceError(f"Unsupported provider '{provider}'. Use one of {sorted(PROVIDERS)}.")


def _call_gemini(prompt: str, response_model: type[BaseModel]) -> str | dict[str, Any]:
    if not settings.gemini_api_key:
        raise AIServiceError("GEMINI_API_KEY is not configured")

    from google import genai
    from google.genai import types

    client = genai.Client(
        api_key=settings.gemini_api_key,
        http_options=types.HttpOptions(timeout=int(settings.lookup_timeout_seconds * 1000)),
    )
    try:
        response = client.models.generate_content(
            model=settings.gemini_model,
            contents=prompt,
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=response_model,
            ),
        )
    except Exception as exc:  # noqa: BLE001
        raise AIServiceError(f"Gemini request failed: {exc}") from exc

    parsed = getattr(response, "parsed", None)
    if isinstance(parsed, BaseModel):
        return parsed.model_dump()
    if isinstance(parsed, dict):
        return parsed

    if not response.text:
        raise AIServiceError("Gemini returned an empty response")
    return response.text


def _call_ollama(prompt: str, response_model: type[BaseModel]) -> str:
    url = settings.ollama_base_url.rstrip("/") + "/api/generate"
    try:
        response = httpx.post(
            url,
            json={
                "model": settings.ollama_model,
                "prompt": prompt,
                "stream": False,
                "format": response_model.model_json_schema(),
            },
            timeout=settings.lookup_timeout_seconds,
        )
        response.raise_for_status()
        answer = response.json().get("response")
    except (httpx.HTTPError, ValueError) as exc:
        raise AIServiceError(f"Ollama request failed: {exc}") from exc

    if not answer:
        raise AIServiceError("Ollama returned an empty response")
    logger.debug("Ollama answered %s chars", len(answer))
    return answer
