"""
services/persistence.py

Implementations of the submission boundary
``submit_answers(session_id, answer_snapshot) -> SubmissionAck``.

  - InMemorySubmissionStore : grades and records locally (default)
  - HttpSubmissionClient    : forwards to a REST backend with httpx
"""

import asyncio
import logging
import threading
from collections import OrderedDict
from typing import Dict, List, Optional

import httpx

from proctored_cbt.errors import SubmissionError
from proctored_cbt.models.question_model import Question
from proctored_cbt.models.session_state import AnswerValue, SubmissionAck
from proctored_cbt.services.exam_service import calculate_score, grade_answers

logger = logging.getLogger(__name__)


class InMemorySubmissionStore:
    """
    Local submission backend.

    A repeated submission for the same session returns the stored ack
    instead of grading again. At most ``max_records`` submissions are kept;
    the oldest are evicted first. Sessions that are never submitted should
    be released with forget().
    """

    def __init__(self, latency: float = 0.0, max_records: int = 1000) -> None:
        self.latency = latency
        self.max_records = max_records
        self._lock = threading.Lock()
        self._questions: Dict[str, List[Question]] = {}
        self._acks: "OrderedDict[str, SubmissionAck]" = OrderedDict()
        self._answers: Dict[str, Dict[str, AnswerValue]] = {}
        self._results: Dict[str, dict] = {}

    def register(self, session_id: str, questions: List[Question]) -> None:
        """Attach the session's question list so submissions can be graded."""
        with self._lock:
            self._questions[session_id] = list(questions)

    async def submit_answers(
        self, session_id: str, answers: Dict[str, AnswerValue]
    ) -> SubmissionAck:
        if self.latency:
            await asyncio.sleep(self.latency)

        with self._lock:
            existing = self._acks.get(session_id)
            if existing is not None:
                logger.info(f"[{session_id}] Duplicate submission, returning stored ack")
                return existing

            questions = self._questions.get(session_id, [])
            score = calculate_score(questions, answers) if questions else None
            ack = SubmissionAck(session_id=session_id, score=score)
            self._acks[session_id] = ack
            self._answers[session_id] = dict(answers)
            self._results[session_id] = grade_answers(questions, answers)
            while len(self._acks) > self.max_records:
                oldest, _ = self._acks.popitem(last=False)
                self._drop(oldest)

        logger.info(f"[{session_id}] Submission stored ({len(answers)} answers)")
        return ack

    def get_submission(self, session_id: str) -> Optional[Dict[str, AnswerValue]]:
        with self._lock:
            answers = self._answers.get(session_id)
            return dict(answers) if answers is not None else None

    def get_results(self, session_id: str) -> Optional[dict]:
        with self._lock:
            return self._results.get(session_id)

    def is_registered(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._questions

    def forget(self, session_id: str) -> None:
        """Drop everything held for ``session_id``."""
        with self._lock:
            self._acks.pop(session_id, None)
            self._drop(session_id)

    def _drop(self, session_id: str) -> None:
        self._questions.pop(session_id, None)
        self._answers.pop(session_id, None)
        self._results.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._acks)


class HttpSubmissionClient:
    """
    POSTs ``{"answers": snapshot}`` to
    ``{base_url}/api/test-attempts/{session_id}/submit``.

    Server-side dedup is the backend's responsibility; the client makes
    exactly one request per call and never retries.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def submit_answers(
        self, session_id: str, answers: Dict[str, AnswerValue]
    ) -> SubmissionAck:
        url = f"{self.base_url}/api/test-attempts/{session_id}/submit"
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(url, json={"answers": answers})
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(f"[{session_id}] Submission rejected: HTTP {e.response.status_code}")
            raise SubmissionError(
                f"Submission failed (HTTP {e.response.status_code}). Please try again."
            ) from e
        except httpx.HTTPError as e:
            logger.warning(f"[{session_id}] Submission request failed: {e}")
            raise SubmissionError("Could not reach the server. Please try again.") from e

        score = None
        if isinstance(data, dict) and "score" in data:
            score = {
                "obtained_marks": data.get("score"),
                "total_marks": data.get("maxScore"),
                "correct": data.get("correctAnswers"),
                "total": data.get("totalQuestions"),
            }
        return SubmissionAck(session_id=session_id, score=score)
