import asyncio

import pytest

import api.session as session_store
from proctored_cbt.errors import SubmissionError
from proctored_cbt.models.question_model import Question, TestData
from proctored_cbt.models.session_state import SubmissionAck


class RecordingBackend:
    """Async persistence double: records every call, can delay, block or fail."""

    def __init__(self, delay: float = 0.0, fail_times: int = 0, error: Exception | None = None):
        self.delay = delay
        self.fail_times = fail_times
        self.error = error
        self.gate: asyncio.Event | None = None
        self.calls: list[tuple[str, dict]] = []

    async def __call__(self, session_id: str, answers: dict) -> SubmissionAck:
        self.calls.append((session_id, dict(answers)))
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_times > 0:
            self.fail_times -= 1
            raise self.error or SubmissionError("Server unavailable. Please try again.")
        return SubmissionAck(session_id=session_id)


@pytest.fixture
def backend():
    return RecordingBackend()


@pytest.fixture
def make_questions():
    def _make(count: int = 3) -> list[Question]:
        return [
            Question(
                id=f"q{i}",
                prompt=f"Question {i}?",
                options=["A", "B", "C", "D"],
                correct_answer="B",
                points=1,
            )
            for i in range(1, count + 1)
        ]
    return _make


@pytest.fixture
def make_test_data(make_questions):
    def _make(count: int = 3, **overrides) -> TestData:
        data = {
            "id": "t1",
            "title": "Sample",
            "duration": 10,
            "questions": make_questions(count),
            "is_timed": True,
            "allow_review": True,
            "show_score": True,
            "shuffle_questions": False,
            "shuffle_options": False,
        }
        data.update(overrides)
        return TestData(**data)
    return _make


@pytest.fixture(autouse=True)
def _clear_cookie_sessions():
    yield
    session_store.clear_all()
