"""
Data models for adaptive difficulty.

In-session:
- AtomInteractionMetrics: live, mutable per-atom signal
- AtomPerformanceRecord: immutable summary produced when an atom ends
- AdaptationDecision / ContentModifications: "should I adapt?" answers
- LearningAtom / AtomContent: the content being adapted

Cross-session:
- HistoricalPerformanceMetrics: validated external aggregates
- SessionContext, DifficultyAdjustment: suggester input/output
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from adaptive_engine.content.models import CompiledQuestion


# =============================================================================
# Enums
# =============================================================================


class DifficultyLevel(str, Enum):
    """Discrete difficulty of a single atom."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    def step(self, delta: int) -> DifficultyLevel:
        """Move ``delta`` levels, clamped to easy..hard."""
        order = list(DifficultyLevel)
        index = min(len(order) - 1, max(0, order.index(self) + delta))
        return order[index]


class AdjustmentDirection(str, Enum):
    INCREASE = "increase"
    DECREASE = "decrease"
    MAINTAIN = "maintain"


class EncouragementStrategy(str, Enum):
    CHALLENGE = "challenge"
    SUPPORT = "support"
    CELEBRATE = "celebrate"
    ENCOURAGE = "encourage"


class RealtimeAdjustment(str, Enum):
    EASIER = "easier"
    HARDER = "harder"
    MAINTAIN = "maintain"


# =============================================================================
# In-Session
# =============================================================================


@dataclass
class AtomInteractionMetrics:
    """Live metrics for one atom session."""

    atom_id: str
    consecutive_correct: int = 0
    consecutive_incorrect: int = 0
    total_attempts: int = 0
    total_response_time: float = 0.0  # seconds, cumulative
    average_response_time: float = 0.0
    hints_requested: int = 0
    struggling_indicators: list[str] = field(default_factory=list)
    mastery_indicators: list[str] = field(default_factory=list)
    adapted_difficulty: Optional[DifficultyLevel] = None  # last variant issued
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def snapshot(self) -> AtomInteractionMetrics:
        """Independent copy safe to hand outside the store lock."""
        return replace(
            self,
            struggling_indicators=list(self.struggling_indicators),
            mastery_indicators=list(self.mastery_indicators),
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["started_at"] = self.started_at.isoformat()
        data["adapted_difficulty"] = self.adapted_difficulty.value if self.adapted_difficulty else None
        return data


@dataclass(frozen=True)
class AtomPerformanceRecord:
    """Summary of a finished atom session, persisted by the caller."""

    atom_id: str
    attempts: int
    time_taken_seconds: float
    hints_used: int
    success: bool
    first_attempt_success: bool
    timestamp: str  # ISO-8601, UTC

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ContentModifications:
    """Scaffolding (easy path) or extension material (hard path)."""

    simplified_instructions: Optional[str] = None
    additional_hints: list[str] = field(default_factory=list)
    scaffolding: list[str] = field(default_factory=list)
    advanced_challenges: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value}


@dataclass
class AdaptationDecision:
    """Answer to "should this atom change difficulty now?"."""

    should_adapt: bool
    new_difficulty: Optional[DifficultyLevel] = None
    reason: str = ""
    content_modifications: Optional[ContentModifications] = None


@dataclass
class AtomContent:
    description: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class LearningAtom:
    """One discrete learning interaction (a question or micro-activity)."""

    id: str
    subject: str
    difficulty: DifficultyLevel
    content: AtomContent
    variant_id: Optional[str] = None

    @classmethod
    def from_question(
        cls,
        question: CompiledQuestion,
        difficulty: DifficultyLevel = DifficultyLevel.MEDIUM,
        atom_id: Optional[str] = None,
    ) -> LearningAtom:
        """Wrap a compiled question as an atom (id defaults to the question id)."""
        return cls(
            id=atom_id or question.id,
            subject=question.subject,
            difficulty=difficulty,
            content=AtomContent(
                description=question.question_text,
                data={
                    "template_id": question.template_id,
                    "skill_area": question.skill_area,
                    "options": list(question.options),
                    "correct_index": question.correct_index,
                    "explanation": question.explanation,
                },
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "subject": self.subject,
            "difficulty": self.difficulty.value,
            "variant_id": self.variant_id,
            "content": {"description": self.content.description, "data": self.content.data},
        }


# =============================================================================
# Cross-Session
# =============================================================================


class HistoricalPerformanceMetrics(BaseModel):
    """Aggregated history for one learner and skill, supplied by the caller."""

    model_config = ConfigDict(frozen=True)

    accuracy_rate: float = Field(ge=0, le=100, description="Percent correct")
    consistency_score: float = Field(ge=0, le=100)
    engagement_level: float = Field(ge=0, le=100)
    recent_session_scores: list[float] = Field(default_factory=list)
    strength_areas: list[str] = Field(default_factory=list)
    challenge_areas: list[str] = Field(default_factory=list)
    response_time_avg: Optional[float] = Field(default=None, ge=0, description="Seconds")


@dataclass
class SessionContext:
    subject: str
    skill_area: str
    total_questions: int = 0
    time_spent_minutes: float = 0.0


@dataclass
class DifficultyAdjustment:
    """Recommended starting level and plan for the next session."""

    new_difficulty_level: int
    adjustment_reason: str
    recommended_interventions: list[str]
    suggested_practice_areas: list[str]
    encouragement_strategy: EncouragementStrategy
    direction: AdjustmentDirection = AdjustmentDirection.MAINTAIN

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["encouragement_strategy"] = self.encouragement_strategy.value
        data["direction"] = self.direction.value
        return data
