"""
Atom Difficulty Advisor.

Picks the easy/medium/hard level of the next atom from objective progress
and the AtomPerformanceRecord of the previous one. Complements the 1-5
session-level DifficultySuggester at single-atom granularity.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from loguru import logger

from adaptive_engine.adaptive.models import AtomPerformanceRecord, DifficultyLevel


@dataclass
class ObjectiveProgress:
    """Caller-supplied history for one learning objective."""

    total_attempts: int = 0
    successful_attempts: int = 0
    is_completed: bool = False

    @property
    def success_rate(self) -> float:
        if self.total_attempts <= 0:
            return 0.0
        return self.successful_attempts / self.total_attempts


class AtomDifficultyAdvisor:
    """Rule-based level selection for individual atoms."""

    def suggest_initial_difficulty(self, progress: Optional[ObjectiveProgress]) -> DifficultyLevel:
        """Starting level for an objective."""
        if progress is None or progress.total_attempts == 0:
            return DifficultyLevel.MEDIUM

        rate = progress.success_rate
        attempts = progress.total_attempts

        if progress.is_completed:
            # Revision of finished work
            if rate > 0.7 and attempts <= 2:
                return DifficultyLevel.HARD
            if rate < 0.4:
                return DifficultyLevel.EASY
            return DifficultyLevel.MEDIUM

        if rate > 0.6 and attempts < 3:
            return DifficultyLevel.MEDIUM
        if rate < 0.3 and attempts >= 2:
            return DifficultyLevel.EASY
        if attempts >= 3:
            logger.debug(f"Mixed results over {attempts} attempts; starting easy")
            return DifficultyLevel.EASY
        return DifficultyLevel.MEDIUM

    def suggest_next_difficulty_on_retry(
        self,
        current: DifficultyLevel,
        last_attempt: AtomPerformanceRecord,
    ) -> DifficultyLevel:
        """
        Level for retrying the same atom.

        A failure steps down; a success after earlier failure only lifts
        easy to medium and otherwise holds.
        """
        current = DifficultyLevel(current)
        if not last_attempt.success:
            return current.step(-1)
        if current == DifficultyLevel.EASY:
            return DifficultyLevel.MEDIUM
        return current

    def suggest_next_atom_difficulty(
        self,
        current: DifficultyLevel,
        last_atom: AtomPerformanceRecord,
        subject_success_rate: Optional[float] = None,
    ) -> DifficultyLevel:
        """
        Level for the next atom in the same subject.

        Args:
            current: Level of the atom just finished
            last_atom: Its performance record
            subject_success_rate: Historical success rate in the subject (0.0-1.0)
        """
        current = DifficultyLevel(current)

        if not last_atom.success:
            return current.step(-1)

        if last_atom.first_attempt_success and last_atom.hints_used == 0:
            if current == DifficultyLevel.MEDIUM:
                strong_history = subject_success_rate is not None and subject_success_rate > 0.75
                return DifficultyLevel.HARD if strong_history else DifficultyLevel.MEDIUM
            return current.step(1)

        # Got there with help or extra attempts
        if current == DifficultyLevel.HARD and (last_atom.attempts > 1 or last_atom.hints_used > 0):
            return DifficultyLevel.MEDIUM
        return current
