"""
api/routes.py — FastAPI endpoints for the test-taking view
"""

import logging
from typing import List, Optional, Union

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

import api.session as session
import config
from api.sample_tests import SAMPLE_TESTS
from proctored_cbt.errors import ReviewNotAllowed, SubmissionError
from proctored_cbt.models.question_model import Question, QuestionType
from proctored_cbt.models.session_state import SessionStatus, Violation
from proctored_cbt.services.answer_store import UNANSWERED
from proctored_cbt.services.drafts import DraftPolicy
from proctored_cbt.services.persistence import InMemorySubmissionStore
from proctored_cbt.services.proctoring import InMemoryProctoringMonitor
from proctored_cbt.services.session_timer import format_time
from proctored_cbt.services.test_session import TestSession

logger = logging.getLogger(__name__)

router = APIRouter()

# ── Pydantic request bodies ──────────────────────────────────────────────────

class StartTestBody(BaseModel):
    test_id: str

class SaveAnswerBody(BaseModel):
    question_id: str
    answer: Union[int, str]

class NavigateBody(BaseModel):
    index: int = 0

class QuestionRefBody(BaseModel):
    question_id: str

class ViolationBody(BaseModel):
    type: str
    message: str = ""
    timestamp: Optional[float] = None

class ProctoringSignalBody(BaseModel):
    face_detected: Optional[bool] = None
    is_fullscreen: Optional[bool] = None
    tab_focus_lost: Optional[bool] = None
    violations: List[ViolationBody] = []

class SubmitBody(BaseModel):
    confirm: bool = False


# ── Helpers ──────────────────────────────────────────────────────────────────

def _sid(request: Request) -> str:
    return request.state.session_id


def _require_test_session(request: Request) -> TestSession:
    test_session: TestSession | None = session.get(_sid(request), "test_session")
    if test_session is None:
        raise HTTPException(status_code=404, detail="No active test session.")
    return test_session


def _require_in_progress(test_session: TestSession) -> None:
    if test_session.status != SessionStatus.IN_PROGRESS:
        raise HTTPException(status_code=400, detail="The test has already been submitted.")
    if test_session.time_up:
        raise HTTPException(status_code=400, detail="Time is up. The test is being submitted.")


def _require_question(test_session: TestSession, question_id: str) -> Question:
    question = test_session.get_question(question_id)
    if question is None:
        raise HTTPException(status_code=404, detail="Question not found.")
    return question


def _validate_answer(question: Question, answer: Union[int, str]) -> None:
    if question.type != QuestionType.MCQ:
        return
    if isinstance(answer, int):
        if not 0 <= answer < len(question.options):
            raise HTTPException(status_code=422, detail="Option index out of range.")
    elif answer and answer not in question.option_ids:
        raise HTTPException(status_code=422, detail="Unknown option id.")


def _nav_response(test_session: TestSession, moved: bool) -> dict:
    return {"index": test_session.current_index, "moved": moved, "ok": True}


def _require_navigable(test_session: TestSession) -> None:
    if test_session.is_submitted and not test_session.navigation.review_mode:
        raise HTTPException(status_code=400, detail="The test has already been submitted.")


# ── Endpoints ────────────────────────────────────────────────────────────────

@router.get("/api/tests")
async def list_tests():
    return [
        {
            "id": td.id,
            "title": td.title,
            "duration": td.duration,
            "question_count": min(len(td.questions), td.max_questions or len(td.questions)),
            "is_timed": td.is_timed,
        }
        for td in SAMPLE_TESTS.values()
    ]


@router.post("/api/start-test")
async def start_test(body: StartTestBody, request: Request):
    test_data = SAMPLE_TESTS.get(body.test_id)
    if test_data is None:
        raise HTTPException(status_code=404, detail="Test not found.")
    if not test_data.questions:
        raise HTTPException(status_code=400, detail="The test has no questions.")

    sid = _sid(request)
    session.reset(sid)  # one active test session per view

    backend = request.app.state.submission_backend
    monitor = InMemoryProctoringMonitor()
    test_session = TestSession(
        test_data,
        persist=backend.submit_answers,
        monitor=monitor,
        draft_store=request.app.state.draft_store,
        draft_policy=DraftPolicy(enabled=config.DRAFT_AUTOSAVE, interval_seconds=config.DRAFT_INTERVAL),
        draft_key=f"{sid}-{test_data.id}",
        tick_interval=config.TICK_INTERVAL,
        pass_score=config.PASS_SCORE,
    )
    test_session.start()
    if isinstance(backend, InMemorySubmissionStore):
        backend.register(test_session.session_id, test_session.questions)
        session.put(sid, "submission_store", backend)

    session.put(sid, "monitor", monitor)
    session.put(sid, "test_session", test_session)
    logger.info(f"Test '{test_data.id}' started for view {sid[:8]} (session {test_session.session_id})")
    return {
        "session_id": test_session.session_id,
        "total": len(test_session.questions),
        "ok": True,
    }


@router.get("/api/session-state")
async def get_session_state(request: Request):
    test_session = _require_test_session(request)
    snapshot = test_session.snapshot_state()
    data = snapshot.model_dump(mode="json")
    data.update({
        "test_id": test_session.test_data.id,
        "title": test_session.test_data.title,
        "total": len(test_session.questions),
        "unanswered_count": test_session.unanswered_count(),
        "time_display": format_time(snapshot.remaining_seconds)
        if snapshot.remaining_seconds is not None else None,
        "time_warning": test_session.time_warning,
        "proctoring": test_session.proctoring.model_dump(mode="json"),
    })
    return data


@router.get("/api/question/{index}")
async def get_question(index: int, request: Request):
    test_session = _require_test_session(request)
    question = test_session.question_at(index)
    if question is None:
        raise HTTPException(status_code=404, detail="Question not found.")

    show_answer = test_session.navigation.review_mode and test_session.test_data.allow_review
    saved = test_session.get_answer(question.id)
    d = question.public_dict(include_answer=show_answer)
    d.update({
        "saved_answer": None if saved is UNANSWERED else saved,
        "bookmarked": question.id in test_session.navigation.bookmarked,
        "flagged": question.id in test_session.navigation.flagged,
        "index": index,
        "total": len(test_session.questions),
    })
    return d


@router.post("/api/save-answer")
async def save_answer(body: SaveAnswerBody, request: Request):
    test_session = _require_test_session(request)
    _require_in_progress(test_session)
    question = _require_question(test_session, body.question_id)
    _validate_answer(question, body.answer)

    test_session.set_answer(body.question_id, body.answer)
    return {"ok": True, "answered_count": test_session.answered_count()}


@router.post("/api/navigate")
async def navigate(body: NavigateBody, request: Request):
    test_session = _require_test_session(request)
    _require_navigable(test_session)
    return _nav_response(test_session, test_session.go_to(body.index))


@router.post("/api/next")
async def next_question(request: Request):
    test_session = _require_test_session(request)
    _require_navigable(test_session)
    return _nav_response(test_session, test_session.next())


@router.post("/api/prev")
async def prev_question(request: Request):
    test_session = _require_test_session(request)
    _require_navigable(test_session)
    return _nav_response(test_session, test_session.prev())


@router.post("/api/next-unanswered")
async def next_unanswered(request: Request):
    test_session = _require_test_session(request)
    _require_navigable(test_session)
    return _nav_response(test_session, test_session.next_unanswered())


@router.post("/api/bookmark")
async def toggle_bookmark(body: QuestionRefBody, request: Request):
    test_session = _require_test_session(request)
    _require_in_progress(test_session)
    _require_question(test_session, body.question_id)
    return {"bookmarked": test_session.toggle_bookmark(body.question_id), "ok": True}


@router.post("/api/flag")
async def toggle_flag(body: QuestionRefBody, request: Request):
    test_session = _require_test_session(request)
    _require_in_progress(test_session)
    _require_question(test_session, body.question_id)
    return {"flagged": test_session.toggle_flag(body.question_id), "ok": True}


@router.post("/api/proctoring-signal")
async def proctoring_signal(body: ProctoringSignalBody, request: Request):
    _require_test_session(request)
    monitor: InMemoryProctoringMonitor | None = session.get(_sid(request), "monitor")
    if monitor is None:
        raise HTTPException(status_code=404, detail="No active test session.")

    violations = [
        Violation(**v.model_dump(exclude_none=True)) for v in body.violations
    ]
    state = monitor.publish(
        face_detected=body.face_detected,
        is_fullscreen=body.is_fullscreen,
        tab_focus_lost=body.tab_focus_lost,
        violations=violations,
    )
    return {"violation_count": state.violation_count, "ok": True}


@router.get("/api/violations")
async def get_violations(request: Request):
    test_session = _require_test_session(request)
    return {
        "violations": [v.model_dump(mode="json") for v in test_session.proctoring.violations],
        "count": test_session.proctoring.violation_count,
    }


@router.post("/api/submit-test")
async def submit_test(body: SubmitBody, request: Request):
    test_session = _require_test_session(request)

    if test_session.status == SessionStatus.SUBMITTED:
        return {"ok": True, "status": test_session.status.value, "already_submitted": True}
    if test_session.status == SessionStatus.SUBMITTING:
        return {"ok": False, "status": test_session.status.value}

    unanswered = test_session.unanswered_count()
    if unanswered > 0 and not body.confirm:
        return {"ok": False, "confirm_required": True, "unanswered": unanswered}

    try:
        await test_session.submit()
    except SubmissionError as e:
        raise HTTPException(status_code=503, detail=e.message)

    return {
        "ok": test_session.is_submitted,
        "status": test_session.status.value,
        "results": test_session.results(),
    }


@router.post("/api/review")
async def enter_review(request: Request):
    test_session = _require_test_session(request)
    try:
        test_session.enter_review()
    except ReviewNotAllowed as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"ok": True, "review_mode": True}


@router.get("/api/results")
async def get_results(request: Request):
    test_session = _require_test_session(request)
    if not test_session.is_submitted:
        raise HTTPException(status_code=400, detail="The test has not been submitted yet.")
    results = test_session.results()
    if results is None:
        raise HTTPException(status_code=403, detail="Results are not available for this test.")
    return results


@router.post("/api/reset")
async def reset_session(request: Request):
    session.reset(_sid(request))
    return {"ok": True}
