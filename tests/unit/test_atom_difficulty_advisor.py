"""
Unit tests for per-atom easy/medium/hard selection.

Run: pytest tests/unit/test_atom_difficulty_advisor.py -v
"""

import pytest

from adaptive_engine.adaptive.atom_difficulty_advisor import AtomDifficultyAdvisor, ObjectiveProgress
from adaptive_engine.adaptive.models import AtomPerformanceRecord, DifficultyLevel

EASY, MEDIUM, HARD = DifficultyLevel.EASY, DifficultyLevel.MEDIUM, DifficultyLevel.HARD


@pytest.fixture
def advisor():
    return AtomDifficultyAdvisor()


def record(success=True, first_attempt_success=True, attempts=1, hints_used=0):
    return AtomPerformanceRecord(
        atom_id="atom",
        attempts=attempts,
        time_taken_seconds=12.0,
        hints_used=hints_used,
        success=success,
        first_attempt_success=first_attempt_success,
        timestamp="2024-01-01T00:00:00+00:00",
    )


class TestInitialDifficulty:
    """Starting level from objective history."""

    @pytest.mark.parametrize(
        "progress, expected",
        [
            (None, MEDIUM),
            (ObjectiveProgress(), MEDIUM),
            (ObjectiveProgress(2, 2, is_completed=True), HARD),
            (ObjectiveProgress(5, 1, is_completed=True), EASY),
            (ObjectiveProgress(5, 3, is_completed=True), MEDIUM),
            (ObjectiveProgress(2, 2), MEDIUM),
            (ObjectiveProgress(2, 0), EASY),
            (ObjectiveProgress(4, 2), EASY),
            (ObjectiveProgress(1, 0), MEDIUM),
        ],
    )
    def test_initial(self, advisor, progress, expected):
        assert advisor.suggest_initial_difficulty(progress) == expected

    def test_success_rate(self):
        assert ObjectiveProgress(4, 3).success_rate == pytest.approx(0.75)
        assert ObjectiveProgress().success_rate == 0.0


class TestRetry:
    """Level when retrying the same atom."""

    @pytest.mark.parametrize(
        "current, success, expected",
        [
            (HARD, False, MEDIUM),
            (MEDIUM, False, EASY),
            (EASY, False, EASY),
            (EASY, True, MEDIUM),
            (MEDIUM, True, MEDIUM),
            (HARD, True, HARD),
        ],
    )
    def test_retry(self, advisor, current, success, expected):
        assert advisor.suggest_next_difficulty_on_retry(current, record(success=success)) == expected


class TestNextAtom:
    """Level for the next atom in a subject."""

    def test_failure_steps_down(self, advisor):
        last = record(success=False, first_attempt_success=False)
        assert advisor.suggest_next_atom_difficulty(HARD, last) == MEDIUM
        assert advisor.suggest_next_atom_difficulty(EASY, last) == EASY

    def test_clean_success_steps_up_from_easy(self, advisor):
        assert advisor.suggest_next_atom_difficulty(EASY, record()) == MEDIUM

    def test_medium_needs_strong_history(self, advisor):
        assert advisor.suggest_next_atom_difficulty(MEDIUM, record(), 0.9) == HARD
        assert advisor.suggest_next_atom_difficulty(MEDIUM, record(), 0.6) == MEDIUM
        assert advisor.suggest_next_atom_difficulty(MEDIUM, record()) == MEDIUM

    def test_hard_stays_hard(self, advisor):
        assert advisor.suggest_next_atom_difficulty(HARD, record()) == HARD

    def test_assisted_success_on_hard_steps_down(self, advisor):
        last = record(first_attempt_success=False, attempts=3)
        assert advisor.suggest_next_atom_difficulty(HARD, last) == MEDIUM

    def test_assisted_success_holds(self, advisor):
        last = record(first_attempt_success=True, hints_used=2)
        assert advisor.suggest_next_atom_difficulty(MEDIUM, last) == MEDIUM
