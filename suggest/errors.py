"""Failures of a suggestion run that happen before or instead of validation."""

from typing import Optional


class SuggestionError(RuntimeError):
    code = "suggestion_error"


class NoContextAvailable(SuggestionError):
    code = "no_context"

    def __init__(self, message: str = "Cannot suggest a layout without any user proposals") -> None:
        super().__init__(message)


class SourceUnavailable(SuggestionError):
    code = "source_unavailable"


class MalformedSuggestion(SuggestionError):
    code = "malformed_suggestion"

    def __init__(self, reason: str, raw_text: Optional[str] = None) -> None:
        super().__init__(f"Suggestion could not be decoded: {reason}")
        self.reason = reason
        self.raw_text = raw_text
