"""
services/randomizer.py

Question / option shuffling, applied once at session start.
Pure functions; the source list is never mutated. No seed is kept, so a
new session (or a remount) gets a different order.
"""

import random
from typing import List, Optional, Sequence, TypeVar

from proctored_cbt.models.question_model import Question, QuestionType

T = TypeVar("T")


def shuffle_array(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """
    Fisher–Yates shuffle on a copy of ``items``.

    Args:
        items: Sequence to shuffle (left untouched).
        rng:   Random source; defaults to the ``random`` module.

    Returns:
        New list with a uniform random permutation of ``items``.
    """
    rng = rng or random
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result


def randomize_test(
    questions: Sequence[Question],
    shuffle_questions: bool = True,
    shuffle_options: bool = True,
    max_questions: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> List[Question]:
    """
    Build the per-session question sequence.

    Order: shuffle (optional) -> truncate to ``max_questions`` -> shuffle
    each MCQ's options (optional). Options keep their ids, so the correct
    answer reference stays valid after shuffling.

    Returns:
        New list of deep-copied Question objects.
    """
    result = [q.model_copy(deep=True) for q in questions]

    if shuffle_questions:
        result = shuffle_array(result, rng)

    if max_questions and len(result) > max_questions:
        result = result[:max_questions]

    if shuffle_options:
        for q in result:
            if q.type == QuestionType.MCQ and q.options:
                q.options = shuffle_array(q.options, rng)

    return result
