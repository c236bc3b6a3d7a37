"""
models/session_state.py

Session status, proctoring signals and the serialisable session snapshot.
Pydantic BaseModel based. No timer or I/O logic here.
"""

import time
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

AnswerValue = Union[str, int]


class SessionStatus(str, Enum):
    """
    Submission state machine states.

    in_progress -> submitting -> submitted (terminal)
    submitting  -> in_progress             (persistence failed, retryable)
    """

    IN_PROGRESS = "in_progress"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"


class Violation(BaseModel):
    """A proctoring violation. Owned by the monitor, read-only for the session."""

    type: str = Field(..., min_length=1, description="e.g. TAB_SWITCH, QUESTION_FLAGGED")
    message: str = Field(default="")
    timestamp: float = Field(default_factory=time.time, description="Unix timestamp")


class ProctoringState(BaseModel):
    """Latest proctoring signal as seen by the session."""

    face_detected: bool = True
    is_fullscreen: bool = False
    tab_focus_lost: bool = False
    violations: List[Violation] = Field(default_factory=list)

    @property
    def violation_count(self) -> int:
        return len(self.violations)


class SubmissionAck(BaseModel):
    """Acknowledgement returned by the persistence collaborator."""

    session_id: str
    accepted: bool = True
    submitted_at: float = Field(default_factory=time.time)
    score: Optional[Dict[str, Any]] = None


class SessionSnapshot(BaseModel):
    """
    Read-only view of a running session, used by the API and by drafts.

    Attributes:
        session_id:        Session identifier.
        status:            Current SessionStatus.
        question_ids:      Question order after randomization.
        current_index:     Current question index (0-based).
        answers:           Answer snapshot. {question.id: value}
        bookmarked:        Bookmarked question ids (sorted).
        flagged:           Flagged question ids (sorted).
        remaining_seconds: Remaining time, None for untimed tests.
        start_time:        Unix timestamp of session start.
        review_mode:       True once the user entered read-only review.
        last_error:        Message of the last failed submission, if any.
        time_up:           True once the countdown reached 00:00.
    """

    session_id: str
    status: SessionStatus = SessionStatus.IN_PROGRESS
    question_ids: List[str] = Field(default_factory=list)
    current_index: int = Field(default=0, ge=0)
    answers: Dict[str, AnswerValue] = Field(default_factory=dict)
    answered_count: int = 0
    bookmarked: List[str] = Field(default_factory=list)
    flagged: List[str] = Field(default_factory=list)
    remaining_seconds: Optional[int] = None
    start_time: float = Field(default_factory=time.time)
    review_mode: bool = False
    last_error: Optional[str] = None
    time_up: bool = False
