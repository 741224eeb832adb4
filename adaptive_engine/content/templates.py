"""
Template library: built-in math templates and the template registry.

Templates are registered once at startup; the registry validates each
one on the way in so authoring bugs surface before any learner sees a
question.
"""

from __future__ import annotations

from typing import Iterator

from loguru import logger

from adaptive_engine.content.compiler import validate_template
from adaptive_engine.content.models import QuestionKind, QuestionTemplate
from adaptive_engine.errors import TemplateError

# =============================================================================
# Built-in Templates
# =============================================================================

MATH_ADDITION_GEMS = QuestionTemplate(
    id="math_addition_gems",
    subject="math",
    skill_area="addition",
    kind=QuestionKind.WORD_PROBLEM,
    difficulty_level=1,
    template=(
        "In the {location}, {character} gathered {num1} {item}. "
        "Then {character} found {num2} more {item}. "
        "How many {item} does {character} have now?"
    ),
    slots={
        "location": ("crystal cave", "hidden valley", "old lighthouse", "sunken ship", "cloud castle"),
        "character": ("Captain Ada", "Ranger Theo", "Inventor Mia", "Pilot Jonas", "Baker Priya"),
        "item": ("gems", "shells", "coins", "feathers", "marbles"),
        "num1": (14, 17, 21, 23, 26, 28, 32, 35),
        "num2": (11, 13, 15, 18, 19, 22, 24),
    },
    correct_answer_formula="num1 + num2",
    explanation_template=(
        "{character} had {num1} {item} and found {num2} more: {num1} + {num2} = {answer}."
    ),
)

MATH_SUBTRACTION_ADVENTURE = QuestionTemplate(
    id="math_subtraction_adventure",
    subject="math",
    skill_area="subtraction",
    kind=QuestionKind.WORD_PROBLEM,
    difficulty_level=1,
    template=(
        "{character} packed {num1} {item} for the {trip}. "
        "Along the way, {num2} {item} were used to {action}. "
        "How many {item} are left?"
    ),
    slots={
        "character": ("Diver Noor", "Climber Eli", "Astronaut Kai", "Knight Wren", "Guide Tomas"),
        "trip": ("river crossing", "moon landing", "desert trek", "reef dive", "mountain climb"),
        "item": ("energy bars", "rope coils", "batteries", "water flasks", "map pieces"),
        "action": ("fix the raft", "power the rover", "cross the bridge", "light the camp", "trade with locals"),
        "num1": (37, 40, 42, 46, 48, 51, 55),
        "num2": (12, 14, 16, 19, 21, 23),
    },
    correct_answer_formula="num1 - num2",
    explanation_template=(
        "{character} started with {num1} {item} and used {num2}: {num1} - {num2} = {answer}."
    ),
)

MATH_MULTIPLICATION_GROUPS = QuestionTemplate(
    id="math_multiplication_groups",
    subject="math",
    skill_area="multiplication",
    kind=QuestionKind.WORD_PROBLEM,
    difficulty_level=2,
    template=(
        "The {place} has {num1} {container}. "
        "Each of them holds {num2} {item}. How many {item} are there altogether?"
    ),
    slots={
        "place": ("toy workshop", "greenhouse", "library", "bakery", "aquarium"),
        "container": ("boxes", "trays", "shelves", "baskets", "tanks"),
        "item": ("robots", "seedlings", "books", "muffins", "fish"),
        "num1": (3, 4, 5, 6, 7, 8, 9),
        "num2": (4, 5, 6, 7, 8, 9, 11, 12),
    },
    correct_answer_formula="num1 * num2",
    explanation_template=(
        "There are {num1} {container} with {num2} {item} in each: {num1} x {num2} = {answer}."
    ),
)

MATH_FAIR_SHARE = QuestionTemplate(
    id="math_fair_share",
    subject="math",
    skill_area="division",
    kind=QuestionKind.WORD_PROBLEM,
    difficulty_level=2,
    template=(
        "{character} has {total} {item} to share equally among {friends} friends. "
        "How many {item} does each friend get?"
    ),
    slots={
        "character": ("Grandma Rosa", "Coach Femi", "Teacher Ines", "Uncle Bo"),
        "item": ("stickers", "cookies", "pencils", "cards"),
        "total": (24, 36, 48, 60, 72),
        "friends": (2, 3, 4, 6, 12),
    },
    correct_answer_formula="total / friends",
    explanation_template=(
        "Sharing {total} {item} among {friends} friends: {total} / {friends} = {answer}."
    ),
)

MATH_RECTANGLE_PERIMETER = QuestionTemplate(
    id="math_rectangle_perimeter",
    subject="math",
    skill_area="geometry",
    kind=QuestionKind.CALCULATION,
    difficulty_level=3,
    template="A rectangle is {length} cm long and {width} cm wide. What is its perimeter in cm?",
    slots={
        "length": (8, 9, 10, 12, 14, 15, 18),
        "width": (3, 4, 5, 6, 7),
    },
    correct_answer_formula="2 * (length + width)",
    explanation_template=(
        "Perimeter = 2 x (length + width) = 2 x ({length} + {width}) = {answer} cm."
    ),
)

BUILTIN_TEMPLATES: tuple[QuestionTemplate, ...] = (
    MATH_ADDITION_GEMS,
    MATH_SUBTRACTION_ADVENTURE,
    MATH_MULTIPLICATION_GROUPS,
    MATH_FAIR_SHARE,
    MATH_RECTANGLE_PERIMETER,
)


# =============================================================================
# Registry
# =============================================================================


class TemplateRegistry:
    """Ordered, id-unique collection of validated templates."""

    def __init__(self, templates: list[QuestionTemplate] | tuple[QuestionTemplate, ...] = ()):
        self._templates: dict[str, QuestionTemplate] = {}
        for template in templates:
            self.register(template)

    def register(self, template: QuestionTemplate) -> None:
        if template.id in self._templates:
            raise TemplateError(f"Duplicate template id '{template.id}'")
        validate_template(template)
        self._templates[template.id] = template
        logger.debug(f"Registered template {template.id} ({template.subject}/{template.skill_area})")

    def get(self, template_id: str) -> QuestionTemplate | None:
        return self._templates.get(template_id)

    def require(self, template_id: str) -> QuestionTemplate:
        template = self.get(template_id)
        if template is None:
            raise TemplateError(f"Unknown template id '{template_id}'")
        return template

    def filter(
        self,
        subject: str,
        skill_area: str | None = None,
        max_difficulty: int | None = None,
    ) -> list[QuestionTemplate]:
        """Templates for a subject, optionally narrowed by skill and difficulty ceiling."""
        return [
            t
            for t in self._templates.values()
            if t.subject == subject
            and (skill_area is None or t.skill_area == skill_area)
            and (max_difficulty is None or t.difficulty_level <= max_difficulty)
        ]

    def __iter__(self) -> Iterator[QuestionTemplate]:
        return iter(self._templates.values())

    def __len__(self) -> int:
        return len(self._templates)

    def __contains__(self, template_id: object) -> bool:
        return template_id in self._templates
