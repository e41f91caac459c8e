"""Shared board where roommates propose layouts, comment, and ask for a compromise."""

from __future__ import annotations

import logging
import os
import threading
import time
from typing import Dict, List, Optional, Set

from catalog.constants import LAYOUT_ID_PREFIX, SHARE_BASE_URL_DEFAULT
from catalog.models import Comment, LayoutCandidate, RoomBundle, User
from evaluation.validators import LayoutValidator
from suggest.pipeline import SuggestionOutcome, SuggestionPipeline
from suggest.sources import SuggestionSource

log = logging.getLogger(__name__)

SHARE_BASE_URL = os.environ.get("SHARE_BASE_URL", SHARE_BASE_URL_DEFAULT)


class CollaborationBoard:
    def __init__(
        self,
        board_id: str,
        bundle: RoomBundle,
        source: Optional[SuggestionSource] = None,
    ) -> None:
        self.board_id = board_id
        self.bundle = bundle
        self.room = bundle.room
        self.users: Set[str] = set()
        self.layouts: Dict[str, LayoutCandidate] = {}
        self.comments: List[Comment] = []
        self.validator = LayoutValidator(bundle.room, bundle.catalog)
        self.pipeline = SuggestionPipeline(self, self.validator, source)
        self._layout_counter = 0
        self._lock = threading.Lock()

    @property
    def room_id(self) -> str:
        return self.room.id

    @property
    def source(self) -> Optional[SuggestionSource]:
        return self.pipeline.source

    @source.setter
    def source(self, value: Optional[SuggestionSource]) -> None:
        self.pipeline.source = value

    # Board-state interface used by the pipeline

    def current_layouts(self) -> List[LayoutCandidate]:
        return list(self.layouts.values())

    def current_comments(self) -> List[Comment]:
        return list(self.comments)

    def register(self, layout: LayoutCandidate) -> str:
        """Store an already validated layout under the next id and return that id.

        Ids are never reused; the counter only moves on registration.
        """
        with self._lock:
            self._layout_counter += 1
            layout_id = f"{LAYOUT_ID_PREFIX}{self._layout_counter}"
            self.layouts[layout_id] = layout.model_copy(update={"layoutId": layout_id}, deep=True)
        return layout_id

    # User actions

    def join(self, user: User) -> None:
        self.users.add(user.name)
        log.info("%s joined board %s", user.name, self.board_id)

    def submit(self, layout: LayoutCandidate) -> SuggestionOutcome:
        return self.pipeline.submit(layout)

    def add_layout(self, layout: LayoutCandidate) -> Optional[LayoutCandidate]:
        """Validate and store a proposal; return the stored copy or ``None``."""
        outcome = self.submit(layout)
        if not outcome.accepted:
            log.warning("Failed to add layout from %s: %s", layout.creator, outcome.error)
            return None
        return outcome.layout

    def comment(self, user: User, text: str) -> Comment:
        entry = Comment(user=user, text=text, timestamp=time.time())
        self.comments.append(entry)
        log.info("%s commented on %s: %r", user.name, self.board_id, text)
        return entry

    def share_link(self) -> str:
        return f"{SHARE_BASE_URL.rstrip('/')}/board/{self.board_id}"

    def run_suggestion(self) -> SuggestionOutcome:
        log.info("Requesting AI layout suggestion for board %s", self.board_id)
        return self.pipeline.run()

    def suggest_layout(self) -> Optional[LayoutCandidate]:
        """Ask the suggestion source for a compromise layout.

        Returns the accepted layout, or ``None`` if the run was rejected.
        """
        outcome = self.run_suggestion()
        if not outcome.accepted:
            log.warning("AI suggestion failed: %s", outcome.error)
            return None
        return outcome.layout

    def summary(self) -> Dict:
        return {
            "board_id": self.board_id,
            "room_id": self.room_id,
            "users": sorted(self.users),
            "layout_ids": list(self.layouts),
            "comment_count": len(self.comments),
            "share_link": self.share_link(),
        }
