"""Progress aggregation after a case submission.

Pure functions: the caller loads the previous snapshot and persists the new
one. Inputs are not validated; negative counters or ``correct > attempted``
in the previous snapshot are the caller's problem.
"""

import math
from collections.abc import Iterable
from enum import Enum

from app.models.progress import CategoryStats, MilestoneSet, ProgressSnapshot, SubmissionResult

PERFECT_SCORE = 100
STREAK_MILESTONES = (5, 10)
MASTERY_MIN_ATTEMPTS = 5
MASTERY_MIN_ACCURACY = 80


def accuracy_percent(correct: int, attempted: int) -> int:
    """Whole-number percentage, rounding halves up; 0 when nothing attempted."""
    if attempted <= 0:
        return 0
    return (200 * correct + attempted) // (2 * attempted)


def score_points(score: float) -> int:
    """Whole-number score, rounding halves up like ``accuracy_percent``."""
    return math.floor(score + 0.5)


def _key(value) -> str:
    return value.value if isinstance(value, Enum) else value


def _bump(stats: CategoryStats | None, is_correct: bool) -> CategoryStats:
    attempted = (stats.attempted if stats else 0) + 1
    correct = (stats.correct if stats else 0) + (1 if is_correct else 0)
    return CategoryStats(
        attempted=attempted,
        correct=correct,
        accuracy=accuracy_percent(correct, attempted),
    )


def _rollup(
    previous: dict[str, CategoryStats], keys: Iterable[str], is_correct: bool
) -> dict[str, CategoryStats]:
    updated = dict(previous)
    for key in keys:
        updated[key] = _bump(updated.get(key), is_correct)
    return updated


def apply_submission(
    previous: ProgressSnapshot | None, result: SubmissionResult
) -> ProgressSnapshot:
    """Return the snapshot that follows ``previous`` after ``result``.

    A wrong answer resets the streak to zero. Every specialty tag on the
    case is updated independently; untouched keys are carried over as-is.
    """
    prev = previous or ProgressSnapshot()

    cases_completed = prev.cases_completed + 1
    total_correct = prev.total_correct + (1 if result.is_correct else 0)
    current_streak = prev.current_streak + 1 if result.is_correct else 0

    return ProgressSnapshot(
        cases_completed=cases_completed,
        total_correct=total_correct,
        accuracy=accuracy_percent(total_correct, cases_completed),
        current_streak=current_streak,
        longest_streak=max(prev.longest_streak, current_streak),
        total_time_spent=prev.total_time_spent + result.time_spent,
        category_progress=_rollup(
            prev.category_progress, [_key(result.case_category)], result.is_correct
        ),
        specialty_progress=_rollup(
            prev.specialty_progress, [_key(t) for t in result.specialty_tags], result.is_correct
        ),
    )


def evaluate_milestones(
    snapshot: ProgressSnapshot, result: SubmissionResult | None = None
) -> MilestoneSet:
    """Evaluate milestone predicates over ``snapshot``.

    Flags are level-triggered: once a threshold holds they are reported on
    every call. Suppressing repeat notifications is up to the caller.
    """
    low, high = STREAK_MILESTONES
    return MilestoneSet(
        first_case=snapshot.cases_completed == 1,
        perfect_score=result is not None and result.score >= PERFECT_SCORE,
        streak5=snapshot.current_streak >= low,
        streak10=snapshot.current_streak >= high,
        category_complete=[
            category
            for category, stats in snapshot.category_progress.items()
            if stats.attempted >= MASTERY_MIN_ATTEMPTS and stats.accuracy >= MASTERY_MIN_ACCURACY
        ],
    )
