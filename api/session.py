"""
api/session.py — multi-user in-memory sessions (cookie based)

Each browser gets a UUID session id; each id holds at most one active
TestSession (the "test-taking view"). Entries expire after SESSION_TTL of
inactivity, except while a timed test is still counting down; an expired
or reset entry has its TestSession disposed so the countdown never fires
after teardown.
"""

import logging
import threading
import time
import uuid
from typing import Any

from config import SESSION_TTL
from proctored_cbt.models.session_state import SessionStatus

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_sessions: dict[str, dict[str, Any]] = {}
_timestamps: dict[str, float] = {}


def _new_state() -> dict[str, Any]:
    return {
        "test_session": None,
        "monitor": None,
        "submission_store": None,
    }


def _dispose_state(state: dict[str, Any]) -> None:
    test_session = state.get("test_session")
    if test_session is None:
        return
    test_session.dispose()
    store = state.get("submission_store")
    if store is not None and test_session.status == SessionStatus.IN_PROGRESS:
        # never submitted: drop the registered question list
        store.forget(test_session.session_id)


def _is_expired(sid: str, now: float) -> bool:
    if now - _timestamps[sid] <= SESSION_TTL:
        return False
    test_session = _sessions[sid].get("test_session")
    timer = getattr(test_session, "timer", None)
    return timer is None or not timer.running


def create_session() -> str:
    """Create a new session and return its id."""
    sid = uuid.uuid4().hex
    with _lock:
        _sessions[sid] = _new_state()
        _timestamps[sid] = time.time()
    return sid


def get_session(sid: str) -> dict[str, Any] | None:
    """Session data for ``sid``; None when missing or expired."""
    expired = None
    with _lock:
        if sid not in _sessions:
            return None
        if _is_expired(sid, time.time()):
            expired = _sessions.pop(sid)
            del _timestamps[sid]
        else:
            _timestamps[sid] = time.time()  # refresh on access
            return _sessions[sid]
    _dispose_state(expired)
    return None


def get(sid: str, key: str, default=None):
    session = get_session(sid)
    if session is None:
        return default
    return session.get(key, default)


def put(sid: str, key: str, value) -> None:
    with _lock:
        if sid in _sessions:
            _sessions[sid][key] = value
            _timestamps[sid] = time.time()


def reset(sid: str) -> None:
    """Dispose the active test session and clear the entry."""
    old = None
    with _lock:
        if sid in _sessions:
            old = _sessions[sid]
            _sessions[sid] = _new_state()
            _timestamps[sid] = time.time()
    if old is not None:
        _dispose_state(old)


def cleanup_expired() -> int:
    """Drop expired sessions. Returns how many were removed."""
    now = time.time()
    removed = []
    with _lock:
        expired = [sid for sid in _timestamps if _is_expired(sid, now)]
        for sid in expired:
            removed.append(_sessions.pop(sid))
            del _timestamps[sid]
    for state in removed:
        _dispose_state(state)
    return len(removed)


def clear_all() -> int:
    """Dispose every session (app shutdown)."""
    with _lock:
        states = list(_sessions.values())
        _sessions.clear()
        _timestamps.clear()
    for state in states:
        _dispose_state(state)
    return len(states)
