"""
Scoring of quiz attempts.

A question counts as answered correctly only when the submitted option indices
are exactly the stored correct indices; there is no partial credit on
multi-select questions.
"""
from typing import Iterable, Sequence


def is_correct(submitted: Sequence[int], correct: Sequence[int]) -> bool:
    """Order-independent exact match of two answer sets."""
    return len(submitted) == len(correct) and set(submitted) == set(correct)


def score_answers(correct_sets: Iterable[Sequence[int]], answer_sets: Iterable[Sequence[int]]) -> int:
    """
    Count the positions where the submitted set matches the correct set.

    Args:
        correct_sets: correct option indices, one entry per question
        answer_sets: submitted option indices, parallel to correct_sets

    Returns:
        Number of correctly answered questions. Positions past the end of
        either sequence are not scored.
    """
    return sum(
        1 for correct, submitted in zip(correct_sets, answer_sets)
        if is_correct(submitted, correct)
    )
