"""Suggestion sources: anything that turns a prompt into response text."""

from __future__ import annotations

import logging
import os
from typing import Optional, Protocol

from catalog.constants import SUGGEST_MODEL_DEFAULT, SUGGEST_TEMPERATURE, SUGGEST_TIMEOUT_S
from suggest.errors import SourceUnavailable

log = logging.getLogger(__name__)

SUGGEST_API_KEY = os.environ.get("SUGGEST_API_KEY", "")
SUGGEST_API_URL = os.environ.get("SUGGEST_API_URL") or None
SUGGEST_MODEL = os.environ.get("SUGGEST_MODEL", SUGGEST_MODEL_DEFAULT)
SUGGEST_TIMEOUT = float(os.environ.get("SUGGEST_TIMEOUT_S", str(SUGGEST_TIMEOUT_S)))

SYSTEM_PROMPT = (
    "You produce furniture layouts as strict JSON. Every coordinate you return "
    "is checked against the room geometry and inventory before it is used."
)


class SuggestionSource(Protocol):
    def generate(self, payload: str) -> str:
        ...


class StaticSource:
    """Source returning canned text; records every payload it was given."""

    def __init__(self, response: str) -> None:
        self.response = response
        self.calls: list[str] = []

    def generate(self, payload: str) -> str:
        self.calls.append(payload)
        return self.response


class ChatCompletionSource:
    """Source backed by an OpenAI-compatible chat-completions endpoint.

    Any client error, including hitting ``timeout``, is raised as
    :class:`SourceUnavailable`.  No retries are attempted.
    """

    def __init__(
        self,
        api_key: str,
        model: str = SUGGEST_MODEL,
        base_url: Optional[str] = SUGGEST_API_URL,
        timeout: float = SUGGEST_TIMEOUT,
        temperature: float = SUGGEST_TEMPERATURE,
    ) -> None:
        if not api_key:
            raise ValueError("An API key is required for the chat-completions source")
        self.model = model
        self.temperature = temperature
        self._client = None
        self._client_kwargs = {
            "api_key": api_key,
            "base_url": base_url,
            "timeout": timeout,
            "max_retries": 0,
        }

    def _get_client(self):
        if self._client is None:
            from openai import OpenAI

            self._client = OpenAI(**self._client_kwargs)
        return self._client

    def generate(self, payload: str) -> str:
        from openai import OpenAIError

        try:
            response = self._get_client().chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": payload},
                ],
                temperature=self.temperature,
            )
        except OpenAIError as exc:
            log.warning("Suggestion source call failed: %s", exc)
            raise SourceUnavailable(f"Suggestion source call failed: {exc}") from exc
        if not response.choices or response.choices[0].message.content is None:
            raise SourceUnavailable("Suggestion source returned no content")
        return response.choices[0].message.content


def source_from_env() -> Optional[SuggestionSource]:
    """Return a :class:`ChatCompletionSource` if ``SUGGEST_API_KEY`` is set."""
    if not SUGGEST_API_KEY:
        log.info("SUGGEST_API_KEY not set; AI suggestions are disabled")
        return None
    return ChatCompletionSource(SUGGEST_API_KEY)
