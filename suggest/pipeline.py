"""Admission pipeline for candidate layouts.

AI suggestions go through every stage::

    IDLE -> AWAITING_SOURCE -> PARSING_RESPONSE -> VALIDATING -> ACCEPTED | REJECTED

Human submissions enter directly at ``VALIDATING`` so both origins pass the
same validators.  A run never raises: failures are returned in the
:class:`SuggestionOutcome` and nothing is registered unless the run ends in
``ACCEPTED``.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence, Union

from catalog.constants import AI_CREATOR
from catalog.models import Comment, LayoutCandidate
from evaluation.validators import LayoutValidator
from evaluation.violations import LayoutViolation
from suggest.errors import MalformedSuggestion, NoContextAvailable, SourceUnavailable, SuggestionError
from suggest.parsing import parse_suggestion
from suggest.prompt import build_context, render_prompt
from suggest.sources import SuggestionSource

log = logging.getLogger(__name__)


class PipelineState(str, enum.Enum):
    IDLE = "idle"
    AWAITING_SOURCE = "awaiting_source"
    PARSING_RESPONSE = "parsing_response"
    VALIDATING = "validating"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class BoardState(Protocol):
    def current_layouts(self) -> Sequence[LayoutCandidate]:
        ...

    def current_comments(self) -> Sequence[Comment]:
        ...

    def register(self, layout: LayoutCandidate) -> str:
        ...


PipelineError = Union[LayoutViolation, SuggestionError]


@dataclass
class SuggestionOutcome:
    state: PipelineState = PipelineState.IDLE
    layout: Optional[LayoutCandidate] = None
    rationale: Optional[str] = None
    error: Optional[PipelineError] = None
    raw_response: Optional[str] = None
    history: List[PipelineState] = field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return self.state is PipelineState.ACCEPTED


class SuggestionPipeline:
    def __init__(
        self,
        board: BoardState,
        validator: LayoutValidator,
        source: Optional[SuggestionSource] = None,
    ) -> None:
        self.board = board
        self.validator = validator
        self.source = source

    def _advance(self, outcome: SuggestionOutcome, state: PipelineState) -> None:
        log.debug("Pipeline %s -> %s", outcome.state.value, state.value)
        outcome.state = state
        outcome.history.append(state)

    def _reject(self, outcome: SuggestionOutcome, error: PipelineError) -> SuggestionOutcome:
        outcome.error = error
        outcome.layout = None
        self._advance(outcome, PipelineState.REJECTED)
        log.warning("Layout rejected (%s): %s", error.code, error)
        return outcome

    def _validate_and_register(
        self, outcome: SuggestionOutcome, candidate: LayoutCandidate
    ) -> SuggestionOutcome:
        self._advance(outcome, PipelineState.VALIDATING)
        try:
            self.validator.validate(candidate)
        except LayoutViolation as exc:
            return self._reject(outcome, exc)
        layout_id = self.board.register(candidate)
        outcome.layout = candidate.model_copy(update={"layoutId": layout_id}, deep=True)
        self._advance(outcome, PipelineState.ACCEPTED)
        log.info("Layout %s (%s) accepted", layout_id, candidate.creator)
        return outcome

    def submit(self, candidate: LayoutCandidate) -> SuggestionOutcome:
        """Validate a human-submitted layout and register it on success."""
        outcome = SuggestionOutcome(history=[PipelineState.IDLE])
        return self._validate_and_register(outcome, candidate)

    def run(self) -> SuggestionOutcome:
        """Ask the source for one compromise layout and admit it if valid.

        The source is invoked at most once per run.
        """
        outcome = SuggestionOutcome(history=[PipelineState.IDLE])
        layouts = list(self.board.current_layouts())
        if not layouts:
            return self._reject(outcome, NoContextAvailable())
        if self.source is None:
            return self._reject(outcome, SourceUnavailable("No suggestion source configured"))

        self._advance(outcome, PipelineState.AWAITING_SOURCE)
        context = build_context(
            self.validator.room,
            self.validator.catalog,
            layouts,
            self.board.current_comments(),
        )
        try:
            raw = self.source.generate(render_prompt(context))
        except SourceUnavailable as exc:
            return self._reject(outcome, exc)
        except Exception as exc:
            # Source failures are opaque; every one of them ends the run.
            log.exception("Suggestion source raised %s", type(exc).__name__)
            return self._reject(outcome, SourceUnavailable(f"Suggestion source failed: {exc}"))
        if not isinstance(raw, str):
            return self._reject(outcome, SourceUnavailable("Suggestion source returned no text"))
        outcome.raw_response = raw

        self._advance(outcome, PipelineState.PARSING_RESPONSE)
        parsed = parse_suggestion(raw)
        if not parsed.ok or parsed.value is None:
            return self._reject(outcome, MalformedSuggestion(parsed.reason, raw))
        outcome.rationale = parsed.value.rationale

        candidate = LayoutCandidate(placements=parsed.value.placements, creator=AI_CREATOR)
        self._validate_and_register(outcome, candidate)
        if outcome.accepted:
            log.info("AI layout %s rationale: %s", outcome.layout.layoutId, outcome.rationale)
        return outcome
