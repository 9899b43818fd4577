"""Tests for progress aggregation and milestone evaluation."""

import random

import pytest
from pydantic import ValidationError

from app.core.progress import accuracy_percent, apply_submission, evaluate_milestones, score_points
from app.models.progress import CategoryStats, ProgressSnapshot


def _run(make_submission, outcomes, category="headache", tags=("im",)):
    snapshot = ProgressSnapshot()
    for is_correct in outcomes:
        snapshot = apply_submission(snapshot, make_submission(is_correct, category=category, tags=tags))
    return snapshot


# -------------------------------------------------------------------
# Accuracy math
# -------------------------------------------------------------------


@pytest.mark.parametrize(
    "correct,attempted,expected",
    [(0, 0, 0), (0, 3, 0), (3, 5, 60), (2, 3, 67), (1, 3, 33), (1, 8, 13), (1, 200, 1), (5, 5, 100)],
)
def test_accuracy_percent(correct, attempted, expected):
    assert accuracy_percent(correct, attempted) == expected


@pytest.mark.parametrize("score,expected", [(0, 0), (0.5, 1), (2.5, 3), (62.5, 63), (99.49, 99), (100, 100)])
def test_score_points_rounds_halves_up(score, expected):
    assert score_points(score) == expected


@pytest.mark.parametrize("score", [float("nan"), float("inf"), float("-inf"), -1, 100.5, 1e12])
def test_submission_rejects_out_of_range_scores(make_submission, score):
    with pytest.raises(ValidationError):
        make_submission(True, score=score)


# -------------------------------------------------------------------
# Concrete scenarios
# -------------------------------------------------------------------


def test_first_correct_submission(make_submission):
    snapshot = apply_submission(ProgressSnapshot(), make_submission(True, category="chest-pain", tags=["em"]))

    assert snapshot.cases_completed == 1
    assert snapshot.total_correct == 1
    assert snapshot.accuracy == 100
    assert snapshot.current_streak == 1
    assert snapshot.category_progress["chest-pain"] == CategoryStats(attempted=1, correct=1, accuracy=100)
    assert snapshot.specialty_progress["em"] == CategoryStats(attempted=1, correct=1, accuracy=100)
    assert evaluate_milestones(snapshot).first_case is True


def test_incorrect_submission_resets_streak(make_submission):
    previous = ProgressSnapshot(
        cases_completed=4,
        total_correct=3,
        current_streak=3,
        category_progress={"abdominal-pain": CategoryStats(attempted=4, correct=3, accuracy=75)},
    )

    snapshot = apply_submission(previous, make_submission(False, category="abdominal-pain", tags=[]))

    assert snapshot.cases_completed == 5
    assert snapshot.total_correct == 3
    assert snapshot.accuracy == 60
    assert snapshot.current_streak == 0
    assert snapshot.category_progress["abdominal-pain"] == CategoryStats(attempted=5, correct=3, accuracy=60)


def test_five_correct_in_one_category_masters_it(make_submission):
    snapshot = _run(make_submission, [True] * 5, category="headache")

    assert snapshot.category_progress["headache"].attempted == 5
    assert snapshot.category_progress["headache"].accuracy == 100
    assert evaluate_milestones(snapshot).category_complete == ["headache"]


def test_none_previous_means_all_zero(make_submission):
    assert apply_submission(None, make_submission(True)) == apply_submission(ProgressSnapshot(), make_submission(True))


# -------------------------------------------------------------------
# Rollups
# -------------------------------------------------------------------


def test_every_specialty_tag_is_updated(make_submission):
    snapshot = apply_submission(ProgressSnapshot(), make_submission(False, tags=["em", "im", "fm"]))

    for tag in ("em", "im", "fm"):
        assert snapshot.specialty_progress[tag] == CategoryStats(attempted=1, correct=0, accuracy=0)


def test_no_specialty_tags_leaves_specialties_alone(make_submission):
    previous = ProgressSnapshot(specialty_progress={"peds": CategoryStats(attempted=2, correct=1, accuracy=50)})

    snapshot = apply_submission(previous, make_submission(True, tags=[]))

    assert snapshot.specialty_progress == previous.specialty_progress


def test_untouched_categories_carry_over(make_submission):
    previous = ProgressSnapshot(
        cases_completed=3,
        total_correct=1,
        category_progress={"headache": CategoryStats(attempted=3, correct=1, accuracy=33)},
    )

    snapshot = apply_submission(previous, make_submission(True, category="chest-pain"))

    assert snapshot.category_progress["headache"] == CategoryStats(attempted=3, correct=1, accuracy=33)
    assert snapshot.category_progress["chest-pain"].attempted == 1


def test_previous_snapshot_is_not_mutated(make_submission):
    previous = ProgressSnapshot(category_progress={"chest-pain": CategoryStats(attempted=1, correct=1, accuracy=100)})

    apply_submission(previous, make_submission(False, category="chest-pain"))

    assert previous.category_progress["chest-pain"].attempted == 1
    assert previous.cases_completed == 0


def test_longest_streak_and_time_spent(make_submission):
    snapshot = ProgressSnapshot()
    for is_correct in [True, True, True, False, True]:
        snapshot = apply_submission(snapshot, make_submission(is_correct, time_spent=30))

    assert snapshot.current_streak == 1
    assert snapshot.longest_streak == 3
    assert snapshot.total_time_spent == 150


# -------------------------------------------------------------------
# Sequence properties
# -------------------------------------------------------------------


@pytest.mark.parametrize("seed", range(5))
def test_counts_and_streak_over_random_sequences(make_submission, seed):
    rng = random.Random(seed)
    categories = ["headache", "chest-pain", "low-back-pain"]
    outcomes = [rng.random() < 0.7 for _ in range(40)]

    snapshot = ProgressSnapshot()
    for is_correct in outcomes:
        snapshot = apply_submission(
            snapshot,
            make_submission(is_correct, category=rng.choice(categories), tags=rng.sample(["em", "im", "fm"], 2)),
        )
        for stats in [*snapshot.category_progress.values(), *snapshot.specialty_progress.values()]:
            assert stats.correct <= stats.attempted

    trailing = 0
    for is_correct in reversed(outcomes):
        if not is_correct:
            break
        trailing += 1

    assert snapshot.cases_completed == len(outcomes)
    assert snapshot.total_correct == sum(outcomes)
    assert snapshot.current_streak == trailing
    assert sum(s.attempted for s in snapshot.category_progress.values()) == len(outcomes)


# -------------------------------------------------------------------
# Milestones
# -------------------------------------------------------------------


def test_first_case_only_on_first_completion(make_submission):
    snapshot = _run(make_submission, [True, True])
    assert evaluate_milestones(snapshot).first_case is False


def test_streak_milestones_are_level_triggered(make_submission):
    snapshot = _run(make_submission, [True] * 4)
    assert evaluate_milestones(snapshot).streak5 is False

    flags = []
    for _ in range(7):
        snapshot = apply_submission(snapshot, make_submission(True))
        milestones = evaluate_milestones(snapshot)
        flags.append((milestones.streak5, milestones.streak10))

    # Fires on every call once the threshold holds, not only on the crossing
    assert flags == [(True, False)] * 5 + [(True, True)] * 2


def test_category_complete_repeats_and_requires_accuracy(make_submission):
    snapshot = _run(make_submission, [True, True, True, True, False], category="headache")
    assert evaluate_milestones(snapshot).category_complete == ["headache"]
    assert evaluate_milestones(snapshot).category_complete == ["headache"]

    snapshot = apply_submission(snapshot, make_submission(False, category="headache"))
    assert snapshot.category_progress["headache"].accuracy == 67
    assert evaluate_milestones(snapshot).category_complete == []


def test_category_complete_needs_five_attempts(make_submission):
    snapshot = _run(make_submission, [True] * 4, category="headache")
    assert evaluate_milestones(snapshot).category_complete == []


def test_perfect_score_requires_result(make_submission):
    result = make_submission(True, score=100)
    snapshot = apply_submission(ProgressSnapshot(), result)

    assert evaluate_milestones(snapshot, result).perfect_score is True
    assert evaluate_milestones(snapshot).perfect_score is False
    assert evaluate_milestones(snapshot, make_submission(True, score=85)).perfect_score is False


def test_milestones_serialise_camel_case(make_submission):
    snapshot = apply_submission(ProgressSnapshot(), make_submission(True))
    dumped = evaluate_milestones(snapshot).model_dump(by_alias=True)

    assert set(dumped) == {"firstCase", "perfectScore", "streak5", "streak10", "categoryComplete"}
