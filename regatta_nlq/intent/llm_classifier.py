"""LLM-based question classifier (feature-flagged by `LLM_ENABLED`).

The model sees a fixed system prompt and the raw question, and is asked for one intent object:
a `queryType` plus whatever sailor, club, regatta, location, year, position or time frame it
found. It never writes SQL. Its output goes through `QueryIntent` validation and the sanitizer like
any other intent.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from regatta_nlq.config.settings import Settings

PROMPT_PATH = Path(__file__).resolve().parent / "prompt_intent_v1.md"


class ClassificationError(RuntimeError):
    """The question could not be turned into a usable intent."""


@dataclass(frozen=True)
class LLMConfig:
    """Connection details for an OpenAI-compatible Chat Completions endpoint."""

    api_key: str
    model: str = "gpt-4o-mini"
    api_base: str = "https://api.openai.com/v1"
    timeout_s: float = 30.0

    @classmethod
    def from_settings(cls, settings: Settings) -> LLMConfig:
        if not settings.llm_api_key:
            raise ClassificationError("LLM_API_KEY is not configured")
        return cls(
            api_key=settings.llm_api_key,
            model=settings.llm_model,
            api_base=settings.llm_api_base,
            timeout_s=settings.llm_timeout_s,
        )


def _load_prompt() -> str:
    return PROMPT_PATH.read_text(encoding="utf-8")


def _strip_code_fences(text: str) -> str:
    value = (text or "").strip()
    if value.startswith("```"):
        value = value.strip("`").strip()
        value = value.removeprefix("json").strip()
    return value


def _build_request(question: str, config: LLMConfig) -> Request:
    body = {
        "model": config.model,
        "temperature": 0,
        "response_format": {"type": "json_object"},
        "messages": [
            {"role": "system", "content": _load_prompt()},
            {"role": "user", "content": question},
        ],
    }
    return Request(
        config.api_base.rstrip("/") + "/chat/completions",
        method="POST",
        headers={
            "Authorization": f"Bearer {config.api_key}",
            "Content-Type": "application/json",
        },
        data=json.dumps(body).encode(),
    )


def _message_content(raw: bytes) -> str:
    """Pull the assistant text out of a Chat Completions response body."""

    try:
        return json.loads(raw)["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError) as exc:
        raise ClassificationError("Unexpected LLM response format") from exc


def classify_via_llm(question: str, *, config: LLMConfig) -> dict[str, Any]:
    """Classify `question` with the model and return its decoded intent object (not yet validated).

    Raises:
        ClassificationError: On HTTP or connection failures, an unexpected response shape, or a
            reply that is not a JSON object.
    """

    try:
        with urlopen(_build_request(question, config), timeout=config.timeout_s) as resp:  # noqa: S310
            raw = resp.read()
    except HTTPError as exc:
        raise ClassificationError(f"LLM HTTP error: {exc.code}") from exc
    except (URLError, TimeoutError) as exc:
        raise ClassificationError("LLM connection error") from exc

    try:
        obj = json.loads(_strip_code_fences(_message_content(raw)))
    except (json.JSONDecodeError, TypeError) as exc:
        raise ClassificationError("LLM did not return valid JSON") from exc

    if not isinstance(obj, dict):
        raise ClassificationError("LLM output must be a JSON object")
    return obj
