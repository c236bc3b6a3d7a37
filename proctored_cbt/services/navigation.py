"""
services/navigation.py

Current question index + bookmark / flag sets.
Out-of-range requests are ignored, never errors.
"""

import logging
from typing import Callable, List, Optional, Sequence, Set

logger = logging.getLogger(__name__)


class NavigationController:
    """
    Navigation state for one session.

    After lock() (session submitted) every operation is a no-op; enabling
    review mode re-allows movement, while bookmarks and flags stay frozen.
    """

    def __init__(self, question_ids: Sequence[str], current_index: int = 0) -> None:
        """
        Args:
            question_ids:  Question order of the session.
            current_index: Start position; ignored when out of range.
        """
        self._question_ids: List[str] = list(question_ids)
        self.current_index = 0
        self.bookmarked: Set[str] = set()
        self.flagged: Set[str] = set()
        self._locked = False
        self._review_mode = False
        self.go_to(current_index)

    # ── state ───────────────────────────────────────────────────────────────

    @property
    def total(self) -> int:
        return len(self._question_ids)

    @property
    def question_ids(self) -> List[str]:
        return list(self._question_ids)

    @property
    def current_question_id(self) -> Optional[str]:
        if not self._question_ids:
            return None
        return self._question_ids[self.current_index]

    @property
    def locked(self) -> bool:
        return self._locked

    @property
    def review_mode(self) -> bool:
        return self._review_mode

    def lock(self) -> None:
        self._locked = True

    def enable_review(self) -> None:
        """Read-only review: navigation only. Requires lock() first."""
        if self._locked:
            self._review_mode = True

    def _can_move(self) -> bool:
        return not self._locked or self._review_mode

    # ── movement ────────────────────────────────────────────────────────────

    def go_to(self, index: int) -> bool:
        """Jump to ``index``. Returns False (index unchanged) when ignored."""
        if not self._can_move():
            return False
        if not 0 <= index < self.total:
            logger.debug(f"Navigation to {index} ignored (total={self.total})")
            return False
        self.current_index = index
        return True

    def next(self) -> bool:
        """One question forward; False at the last question."""
        return self.go_to(self.current_index + 1)

    def prev(self) -> bool:
        """One question back; False at the first question."""
        return self.go_to(self.current_index - 1)

    def next_unanswered(self, is_answered: Callable[[str], bool]) -> bool:
        """
        Jump to the first unanswered question after the current one;
        falls back to next() when there is none.
        """
        if not self._can_move():
            return False
        for index in range(self.current_index + 1, self.total):
            if not is_answered(self._question_ids[index]):
                return self.go_to(index)
        return self.next()

    # ── bookmarks / flags ───────────────────────────────────────────────────

    def toggle_bookmark(self, question_id: str) -> Optional[bool]:
        """
        Flip the bookmark on ``question_id``.

        Returns:
            True when now bookmarked, False when removed, None when locked.
        """
        return self._toggle(self.bookmarked, question_id)

    def toggle_flag(self, question_id: str) -> Optional[bool]:
        """Same contract as toggle_bookmark(), for the review flag."""
        return self._toggle(self.flagged, question_id)

    def _toggle(self, target: Set[str], question_id: str) -> Optional[bool]:
        if self._locked:
            return None
        if question_id in target:
            target.discard(question_id)
            return False
        target.add(question_id)
        return True

    def restore(self, current_index: int, bookmarked, flagged) -> None:
        """Load draft state; unknown question ids are dropped."""
        if self._locked:
            return
        known = set(self._question_ids)
        self.bookmarked = {q for q in bookmarked if q in known}
        self.flagged = {q for q in flagged if q in known}
        self.go_to(current_index)
