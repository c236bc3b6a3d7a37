"""
services/submission.py

Submission state machine.

    in_progress --submit()/auto_submit()--> submitting --ok--> submitted
                                                 |
                                                 +--error--> in_progress (retryable)

The ``submitting`` state is the guard: while a persistence call is in
flight, further submit()/auto_submit() calls return None without calling
persistence again. ``submitted`` is terminal.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from proctored_cbt.errors import SubmissionError
from proctored_cbt.models.session_state import AnswerValue, SessionStatus

logger = logging.getLogger(__name__)

PersistFn = Callable[[str, Dict[str, AnswerValue]], Awaitable[Any]]

_DEFAULT_ERROR = "Failed to submit test. Please try again."


class SubmissionController:
    """
    Performs the terminal transition exactly once and calls out to the
    external ``persist(session_id, answer_snapshot)`` boundary.
    """

    def __init__(
        self,
        session_id: str,
        persist: PersistFn,
        snapshot: Callable[[], Dict[str, AnswerValue]],
    ) -> None:
        self.session_id = session_id
        self._persist = persist
        self._snapshot = snapshot
        self.status = SessionStatus.IN_PROGRESS
        self.ack: Any = None
        self.last_error: Optional[str] = None
        self.submitted_snapshot: Optional[Dict[str, AnswerValue]] = None
        self.auto_submitted = False
        self.persist_calls = 0
        self._hooks: List[Callable[[], None]] = []
        self._reverted_hooks: List[Callable[[bool], None]] = []
        self._submitted = asyncio.Event()

    @property
    def is_submitted(self) -> bool:
        return self.status == SessionStatus.SUBMITTED

    def add_submitted_hook(self, hook: Callable[[], None]) -> None:
        """Register a callback run once right after the terminal transition."""
        self._hooks.append(hook)

    def add_reverted_hook(self, hook: Callable[[bool], None]) -> None:
        """
        Register a callback run after a failed attempt has reverted to
        in_progress. It receives True when the failed attempt was automatic.
        """
        self._reverted_hooks.append(hook)

    async def submit(self) -> Any:
        """
        Manual submit.

        Returns:
            The persistence ack, or None when ignored (already submitting
            or submitted).

        Raises:
            SubmissionError: persistence failed; state is back to in_progress.
        """
        return await self._transition(auto=False)

    async def auto_submit(self) -> Any:
        """
        Timer-triggered submit. Skips confirmation, never raises; a failure
        is logged and kept on ``last_error`` for the UI to show.
        """
        try:
            return await self._transition(auto=True)
        except SubmissionError as e:
            logger.error(f"[{self.session_id}] Auto-submit failed: {e.message}")
            return None

    async def _transition(self, auto: bool) -> Any:
        kind = "auto" if auto else "manual"
        if self.status != SessionStatus.IN_PROGRESS:
            logger.info(f"[{self.session_id}] {kind} submit ignored (status={self.status.value})")
            return None

        self.status = SessionStatus.SUBMITTING
        snapshot = self._snapshot()
        self.persist_calls += 1
        logger.info(f"[{self.session_id}] {kind} submit started ({len(snapshot)} answers)")

        try:
            ack = await self._persist(self.session_id, snapshot)
        except SubmissionError as e:
            self._revert(e.message, auto)
            raise
        except asyncio.CancelledError:
            self._revert(_DEFAULT_ERROR, auto)
            raise
        except Exception as e:
            logger.exception(f"[{self.session_id}] Persistence call failed")
            self._revert(_DEFAULT_ERROR, auto)
            raise SubmissionError(_DEFAULT_ERROR) from e

        self.status = SessionStatus.SUBMITTED
        self.ack = ack
        self.last_error = None
        self.submitted_snapshot = snapshot
        self.auto_submitted = auto
        logger.info(f"[{self.session_id}] Test submitted ({kind})")

        for hook in self._hooks:
            try:
                hook()
            except Exception:
                logger.exception(f"[{self.session_id}] Submitted hook failed")
        self._submitted.set()
        return ack

    def _revert(self, message: str, auto: bool) -> None:
        self.status = SessionStatus.IN_PROGRESS
        self.last_error = message
        logger.warning(f"[{self.session_id}] Submission failed, back to in_progress: {message}")
        for hook in self._reverted_hooks:
            try:
                hook(auto)
            except Exception:
                logger.exception(f"[{self.session_id}] Reverted hook failed")

    async def wait_submitted(self, timeout: Optional[float] = None) -> bool:
        """Wait for the terminal state. Returns False on timeout."""
        try:
            await asyncio.wait_for(self._submitted.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return True
