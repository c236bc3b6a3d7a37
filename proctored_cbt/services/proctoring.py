"""
services/proctoring.py

Proctoring boundary. Face detection, fullscreen and tab focus are computed
elsewhere (browser side); the session only subscribes to the resulting
signal stream and reports "question flagged" events back.
"""

import logging
import threading
from typing import Callable, List, Optional, Protocol

from proctored_cbt.models.session_state import ProctoringState, Violation

logger = logging.getLogger(__name__)

Subscriber = Callable[[ProctoringState], None]

QUESTION_FLAGGED = "QUESTION_FLAGGED"


class ProctoringMonitor(Protocol):
    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        ...

    def log_violation(self, type: str, message: str) -> Violation:
        ...


class InMemoryProctoringMonitor:
    """
    Event hub for proctoring signals pushed by the client.

    publish() replaces the current signal and notifies subscribers;
    log_violation() appends a violation and republishes.
    """

    def __init__(self, state: Optional[ProctoringState] = None) -> None:
        self._lock = threading.Lock()
        self._state = state or ProctoringState()
        self._subscribers: List[Subscriber] = []

    @property
    def state(self) -> ProctoringState:
        with self._lock:
            return self._state.model_copy(deep=True)

    @property
    def violations(self) -> List[Violation]:
        with self._lock:
            return list(self._state.violations)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback``; it is called immediately with the current state."""
        with self._lock:
            self._subscribers.append(callback)
            current = self._state.model_copy(deep=True)
        self._notify_one(callback, current)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def publish(
        self,
        face_detected: Optional[bool] = None,
        is_fullscreen: Optional[bool] = None,
        tab_focus_lost: Optional[bool] = None,
        violations: Optional[List[Violation]] = None,
    ) -> ProctoringState:
        """Merge a client signal into the current state and notify subscribers."""
        with self._lock:
            update = {}
            if face_detected is not None:
                update["face_detected"] = face_detected
            if is_fullscreen is not None:
                update["is_fullscreen"] = is_fullscreen
            if tab_focus_lost is not None:
                update["tab_focus_lost"] = tab_focus_lost
            if violations:
                update["violations"] = self._state.violations + list(violations)
            self._state = self._state.model_copy(update=update)
        return self._broadcast()

    def log_violation(self, type: str, message: str) -> Violation:
        violation = Violation(type=type, message=message)
        logger.info(f"Proctoring violation: {type} - {message}")
        with self._lock:
            self._state = self._state.model_copy(
                update={"violations": self._state.violations + [violation]}
            )
        self._broadcast()
        return violation

    def _broadcast(self) -> ProctoringState:
        with self._lock:
            subscribers = list(self._subscribers)
            current = self._state.model_copy(deep=True)
        for callback in subscribers:
            self._notify_one(callback, current)
        return current

    @staticmethod
    def _notify_one(callback: Subscriber, state: ProctoringState) -> None:
        try:
            callback(state)
        except Exception:
            logger.exception("Proctoring subscriber failed")
