"""
services/exam_service.py

Grading and result summaries.
Pure Python functions; no session state, no I/O.
"""

from typing import Any, Dict, List, Mapping, Optional

from proctored_cbt.models.question_model import Question, QuestionType
from proctored_cbt.models.session_state import AnswerValue
from proctored_cbt.services.answer_store import is_empty_answer


def _is_correct(question: Question, answer: Optional[AnswerValue]) -> Optional[bool]:
    """
    True / False for gradable answers, None when it cannot be graded
    (unanswered, descriptive, or no correct answer on record).
    """
    if is_empty_answer(answer) or question.type != QuestionType.MCQ:
        return None
    if not question.correct_answer:
        return None
    if isinstance(answer, int) and not isinstance(answer, bool):
        # option index into the question's current option order
        if not 0 <= answer < len(question.options):
            return False
        answer = question.options[answer].id
    return answer == question.correct_answer


def grade_answers(
    questions: List[Question],
    answers: Mapping[str, AnswerValue],
) -> Dict[str, Dict[str, Any]]:
    """
    Per-question results.

    Returns:
        {question.id: {"question_id", "user_answer", "correct_answer",
                       "is_correct", "marks", "max_marks"}}
    """
    results: Dict[str, Dict[str, Any]] = {}
    for q in questions:
        user_answer = answers.get(q.id)
        is_correct = _is_correct(q, user_answer)
        results[q.id] = {
            "question_id": q.id,
            "user_answer": None if is_empty_answer(user_answer) else user_answer,
            "correct_answer": q.correct_answer,
            "is_correct": is_correct,
            "marks": q.points if is_correct else 0,
            "max_marks": q.points,
        }
    return results


def calculate_score(
    questions: List[Question],
    answers: Mapping[str, AnswerValue],
) -> Dict[str, Any]:
    """
    Score summary.

    MCQ answers are compared by option id; descriptive answers count as
    attempted only and earn 0 marks until graded manually.

    Returns:
        {"correct", "attempted", "total", "obtained_marks", "total_marks",
         "percentage"}; percentage rounded to 2 decimals, 0.0 for an
        empty test.
    """
    results = grade_answers(questions, answers)
    correct = sum(1 for r in results.values() if r["is_correct"])
    attempted = sum(1 for r in results.values() if r["user_answer"] is not None)
    obtained = sum(r["marks"] for r in results.values())
    total_marks = sum(q.points for q in questions)
    percentage = round(obtained / total_marks * 100, 2) if total_marks else 0.0
    return {
        "correct": correct,
        "attempted": attempted,
        "total": len(questions),
        "obtained_marks": obtained,
        "total_marks": total_marks,
        "percentage": percentage,
    }


def get_incorrect_questions(
    questions: List[Question],
    answers: Mapping[str, AnswerValue],
) -> List[Question]:
    """
    Questions answered wrongly or left unanswered (review list).

    Questions without a correct answer on record, and descriptive
    questions, are excluded. Original order is kept.
    """
    incorrect: List[Question] = []
    for q in questions:
        if q.type != QuestionType.MCQ or not q.correct_answer:
            continue
        if not _is_correct(q, answers.get(q.id)):
            incorrect.append(q)
    return incorrect


def is_passed(percentage: float, pass_score: float = 60.0) -> bool:
    return percentage >= pass_score
