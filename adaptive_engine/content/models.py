"""
Data contracts for templates and compiled questions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

SlotValue = str | int | float


class QuestionKind(str, Enum):
    """How a template phrases its question."""

    WORD_PROBLEM = "word_problem"
    CALCULATION = "calculation"
    CONCEPT = "concept"


class DistractorStrategy(str, Enum):
    """How wrong answers are derived from the correct one."""

    RANDOM_OFFSET = "random_offset"  # seeded deltas and a scaled-down value
    FIXED_OFFSET = "fixed_offset"  # correct + 5, correct - 3, correct * 2


def format_number(value: int | float) -> str:
    """Render a numeric answer: integers plainly, others with up to 2 decimals."""
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return f"{value:.2f}".rstrip("0").rstrip(".")
    return str(value)


def render_value(value: SlotValue) -> str:
    if isinstance(value, str):
        return value
    return format_number(value)


@dataclass(frozen=True)
class QuestionTemplate:
    """
    Immutable parameterized question blueprint.

    Attributes:
        id: Unique template identifier
        subject: Subject the questions belong to (e.g. "math")
        skill_area: Skill within the subject (e.g. "addition")
        kind: Question phrasing style
        difficulty_level: Small positive integer, 1 = easiest
        template: Question text with ``{slot}`` placeholders
        slots: Ordered map of slot name -> candidate values
        correct_answer_formula: Arithmetic expression over slot names
        explanation_template: Explanation text with slots and ``{answer}``
        distractor_strategy: Wrong-answer policy; when unset, word problems
            use random offsets and every other kind uses fixed offsets
    """

    id: str
    subject: str
    skill_area: str
    kind: QuestionKind
    difficulty_level: int
    template: str
    slots: dict[str, tuple[SlotValue, ...]] = field(default_factory=dict)
    correct_answer_formula: str = ""
    explanation_template: str = ""
    distractor_strategy: DistractorStrategy | None = None

    @property
    def resolved_distractor_strategy(self) -> DistractorStrategy:
        if self.distractor_strategy is not None:
            return DistractorStrategy(self.distractor_strategy)
        if self.kind == QuestionKind.WORD_PROBLEM:
            return DistractorStrategy.RANDOM_OFFSET
        return DistractorStrategy.FIXED_OFFSET


@dataclass(frozen=True)
class CompiledQuestion:
    """A concrete question. Same (template_id, seed) always yields an equal instance."""

    id: str
    template_id: str
    seed: int
    question_text: str
    options: tuple[str, ...]
    correct_index: int
    explanation: str
    subject: str
    skill_area: str
    difficulty_level: int
    kind: QuestionKind

    @property
    def correct_option(self) -> str:
        return self.options[self.correct_index]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "template_id": self.template_id,
            "seed": self.seed,
            "question_text": self.question_text,
            "options": list(self.options),
            "correct_index": self.correct_index,
            "explanation": self.explanation,
            "subject": self.subject,
            "skill_area": self.skill_area,
            "difficulty_level": self.difficulty_level,
            "kind": self.kind.value,
        }
