"""
services/answer_store.py

In-memory answer sheet: question id -> response value.
No shape validation happens here; callers match values to option ids.
"""

import logging
from typing import Dict, Iterable, Mapping, Optional

from proctored_cbt.models.session_state import AnswerValue

logger = logging.getLogger(__name__)


class _Unanswered:
    """Sentinel returned by get_answer() for questions without a record."""

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNANSWERED"


UNANSWERED = _Unanswered()


def is_empty_answer(value) -> bool:
    """None, "" and whitespace-only strings are empty; 0 is a real option index."""
    if value is None or value is UNANSWERED:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


class AnswerStore:
    """
    Answer sheet for one session.

    Once locked (session submitted) every write is silently ignored.
    Records are only removed by reset().
    """

    def __init__(self) -> None:
        self._answers: Dict[str, AnswerValue] = {}
        self._locked = False

    @property
    def locked(self) -> bool:
        return self._locked

    def lock(self) -> None:
        self._locked = True

    def set_answer(self, question_id: str, value: AnswerValue) -> bool:
        """Insert/overwrite an answer. Returns False when ignored (locked)."""
        if self._locked:
            logger.debug(f"Answer for {question_id} ignored: session already submitted")
            return False
        self._answers[question_id] = value
        return True

    def get_answer(self, question_id: str):
        return self._answers.get(question_id, UNANSWERED)

    def is_answered(self, question_id: str) -> bool:
        return not is_empty_answer(self._answers.get(question_id))

    def answered_count(self, question_ids: Optional[Iterable[str]] = None) -> int:
        """Number of questions with a non-empty answer, optionally limited to ``question_ids``."""
        if question_ids is None:
            return sum(1 for v in self._answers.values() if not is_empty_answer(v))
        return sum(1 for qid in set(question_ids) if self.is_answered(qid))

    def snapshot(self) -> Dict[str, AnswerValue]:
        return dict(self._answers)

    def restore(self, answers: Mapping[str, AnswerValue]) -> None:
        """Load a saved draft. Ignored once locked."""
        if self._locked:
            return
        self._answers.update(answers)

    def reset(self) -> None:
        """Explicit session reset: clears all records and unlocks."""
        self._answers.clear()
        self._locked = False

    def __len__(self) -> int:
        return len(self._answers)

    def __contains__(self, question_id: object) -> bool:
        return question_id in self._answers
