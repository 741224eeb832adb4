"""
Cross-Session Difficulty Suggester.

Turns a learner's historical aggregates for a skill into the starting
difficulty (1-5) of the next session, with an intervention plan.

Rules (fixed thresholds):
- Increase: accuracy >= 85, consistency >= 80, engagement >= 90 and the
  last 3 session scores all >= 80
- Decrease: accuracy <= 60, consistency <= 50, engagement <= 60, or the
  last 2 session scores both <= 65 (any one is enough)
- Maintain: everything else

Also provides a within-session real-time nudge and an engagement score
derived from raw session activity.
"""
from __future__ import annotations

from typing import Optional, Sequence

from loguru import logger

from adaptive_engine.adaptive.models import (
    AdjustmentDirection,
    DifficultyAdjustment,
    EncouragementStrategy,
    HistoricalPerformanceMetrics,
    RealtimeAdjustment,
    SessionContext,
)

MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 5

# Increase
ADVANCE_ACCURACY = 85
ADVANCE_CONSISTENCY = 80
ADVANCE_ENGAGEMENT = 90
ADVANCE_SCORE = 80
ADVANCE_WINDOW = 3

# Decrease
SUPPORT_ACCURACY = 60
SUPPORT_CONSISTENCY = 50
SUPPORT_ENGAGEMENT = 60
SUPPORT_SCORE = 65
SUPPORT_WINDOW = 2

CELEBRATE_ACCURACY = 75

# Real-time
REALTIME_MIN_QUESTIONS = 3
REALTIME_WINDOW = 3
FAST_RESPONSE_SECONDS = 15
SLOW_RESPONSE_SECONDS = 60
HARDER_ACCURACY = 0.8
EASIER_ACCURACY = 0.4

ADVANCE_INTERVENTIONS = [
    "Introduce multi-step problems that combine skills",
    "Add questions that ask the learner to justify an answer",
    "Offer open-ended problems with more than one solution path",
]
SUPPORT_INTERVENTIONS = [
    "Revisit prerequisite concepts before new material",
    "Use worked examples followed by guided practice",
    "Add visual models and manipulatives",
    "Allow extra time per question",
]
MAINTAIN_INTERVENTIONS = [
    "Rotate question formats to keep practice fresh",
    "Target recurring mistake patterns",
    "Point out progress in strength areas",
]

ADVANCE_FILLER = ["advanced_applications", "creative_problem_solving"]
SUPPORT_FILLER = ["foundational_concepts", "basic_skill_building"]


def _window_all(scores: Sequence[float], size: int, predicate) -> bool:
    """True when at least ``size`` scores exist and the last ``size`` satisfy ``predicate``."""
    if len(scores) < size:
        return False
    return all(predicate(score) for score in scores[-size:])


class DifficultySuggester:
    """Stateless; safe to share between threads."""

    def suggest(
        self,
        current_difficulty: int,
        metrics: HistoricalPerformanceMetrics,
        context: Optional[SessionContext] = None,
    ) -> DifficultyAdjustment:
        """
        Recommend the next session's starting difficulty.

        Args:
            current_difficulty: Current level, 1-5
            metrics: Historical aggregates for the learner and skill
            context: Optional session context (used for logging only)

        Returns:
            DifficultyAdjustment for the next session
        """
        current = min(MAX_DIFFICULTY, max(MIN_DIFFICULTY, int(current_difficulty)))
        accuracy = metrics.accuracy_rate
        scores = metrics.recent_session_scores

        if (
            accuracy >= ADVANCE_ACCURACY
            and metrics.consistency_score >= ADVANCE_CONSISTENCY
            and metrics.engagement_level >= ADVANCE_ENGAGEMENT
            and _window_all(scores, ADVANCE_WINDOW, lambda s: s >= ADVANCE_SCORE)
        ):
            adjustment = DifficultyAdjustment(
                new_difficulty_level=min(MAX_DIFFICULTY, current + 1),
                adjustment_reason=f"Strong, consistent results; ready for harder material ({accuracy:g}% accuracy)",
                recommended_interventions=list(ADVANCE_INTERVENTIONS),
                suggested_practice_areas=metrics.strength_areas[:2] + ADVANCE_FILLER,
                encouragement_strategy=EncouragementStrategy.CHALLENGE,
                direction=AdjustmentDirection.INCREASE,
            )
        elif (
            accuracy <= SUPPORT_ACCURACY
            or metrics.consistency_score <= SUPPORT_CONSISTENCY
            or metrics.engagement_level <= SUPPORT_ENGAGEMENT
            or _window_all(scores, SUPPORT_WINDOW, lambda s: s <= SUPPORT_SCORE)
        ):
            adjustment = DifficultyAdjustment(
                new_difficulty_level=max(MIN_DIFFICULTY, current - 1),
                adjustment_reason=f"Stepping back to strengthen foundations ({accuracy:g}% accuracy)",
                recommended_interventions=list(SUPPORT_INTERVENTIONS),
                suggested_practice_areas=metrics.challenge_areas[:2] + SUPPORT_FILLER,
                encouragement_strategy=EncouragementStrategy.SUPPORT,
                direction=AdjustmentDirection.DECREASE,
            )
        else:
            adjustment = DifficultyAdjustment(
                new_difficulty_level=current,
                adjustment_reason=f"Holding the current level while confidence builds ({accuracy:g}% accuracy)",
                recommended_interventions=list(MAINTAIN_INTERVENTIONS),
                suggested_practice_areas=metrics.challenge_areas[:2],
                encouragement_strategy=(
                    EncouragementStrategy.CELEBRATE
                    if accuracy >= CELEBRATE_ACCURACY
                    else EncouragementStrategy.ENCOURAGE
                ),
                direction=AdjustmentDirection.MAINTAIN,
            )

        scope = f" for {context.subject}/{context.skill_area}" if context else ""
        logger.info(
            f"Difficulty suggestion{scope}: {current} -> {adjustment.new_difficulty_level} "
            f"({adjustment.direction.value})"
        )
        return adjustment

    def get_realtime_adjustment(
        self,
        question_number: int,
        recent_answers: Sequence[bool],
        response_time_seconds: float,
    ) -> RealtimeAdjustment:
        """
        Nudge difficulty within a session from the last 3 answers.

        Always ``maintain`` before the third question (no baseline yet).
        With no answers to score, only a slow response can ask for easier.
        """
        if question_number < REALTIME_MIN_QUESTIONS:
            return RealtimeAdjustment.MAINTAIN

        window = list(recent_answers)[-REALTIME_WINDOW:]
        if not window:
            if response_time_seconds > SLOW_RESPONSE_SECONDS:
                return RealtimeAdjustment.EASIER
            return RealtimeAdjustment.MAINTAIN
        accuracy = sum(1 for answer in window if answer) / len(window)

        if accuracy >= HARDER_ACCURACY and response_time_seconds < FAST_RESPONSE_SECONDS:
            return RealtimeAdjustment.HARDER
        if accuracy <= EASIER_ACCURACY or response_time_seconds > SLOW_RESPONSE_SECONDS:
            return RealtimeAdjustment.EASIER
        return RealtimeAdjustment.MAINTAIN

    @staticmethod
    def calculate_engagement_level(
        questions_answered: int,
        time_spent_minutes: float,
        help_requests: int = 0,
        breaks_taken: int = 0,
        interactions: int = 0,
    ) -> float:
        """
        Engagement score (0-100) from raw session activity.

        - completion rate: questions per 3-minute block
        - interaction rate: interactions per question
        - +10 when the learner took at least one break (self-regulation)
        - up to -20 for help requests (2 points each)
        """
        completion_rate = questions_answered / max(1, time_spent_minutes / 3)
        interaction_rate = interactions / max(1, questions_answered)
        self_regulation = 10 if breaks_taken > 0 else 0

        base = min(100, completion_rate * 40 + interaction_rate * 30 + self_regulation + 20)
        help_penalty = min(20, help_requests * 2)
        return max(0, base - help_penalty)
