"""Decode the free-text answer of a suggestion source.

Sources are free to wrap their answer in prose or code fences; only the
first top-level JSON object in the text is considered, and it must match
the :class:`~catalog.models.SuggestionResult` shape exactly.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Optional

from pydantic import ValidationError

from catalog.models import SuggestionResult


@dataclass(frozen=True)
class ParseResult:
    ok: bool
    value: Optional[SuggestionResult] = None
    reason: str = ""

    @classmethod
    def success(cls, value: SuggestionResult) -> "ParseResult":
        return cls(True, value, "")

    @classmethod
    def failure(cls, reason: str) -> "ParseResult":
        return cls(False, None, reason)


def extract_json_block(text: str) -> Optional[str]:
    """Return the first balanced ``{...}`` block in ``text``.

    Braces inside JSON string literals are ignored.  Returns ``None`` when no
    opening brace exists or the first one is never closed.
    """
    start = text.find("{")
    if start < 0:
        return None
    depth = 0
    in_string = False
    escaped = False
    for idx in range(start, len(text)):
        ch = text[idx]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : idx + 1]
    return None


def _describe(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "<root>"
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)


def parse_suggestion(text: Optional[str]) -> ParseResult:
    """Decode ``text`` into a :class:`SuggestionResult` without raising."""
    if not text:
        return ParseResult.failure("empty response")
    block = extract_json_block(text)
    if block is None:
        if "{" in text:
            return ParseResult.failure("unbalanced braces: first JSON object is never closed")
        return ParseResult.failure("response did not contain a JSON object")
    try:
        json.loads(block)
    except json.JSONDecodeError as exc:
        return ParseResult.failure(f"malformed JSON: {exc}")
    try:
        # strict: no string-to-number coercion of untrusted coordinates
        value = SuggestionResult.model_validate_json(block, strict=True)
    except ValidationError as exc:
        return ParseResult.failure(f"unexpected shape: {_describe(exc)}")
    return ParseResult.success(value)
