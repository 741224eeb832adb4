"""
Load question templates from JSON files.

Accepted layouts:
- A JSON list of template objects
- An object with a ``templates`` list

Field names may be snake_case or camelCase (``skillArea``,
``difficultyLevel``, ``correctAnswerFormula``, ``explanationTemplate``,
``distractorStrategy``);
``variables`` is accepted for ``slots`` and ``type`` for ``kind``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from adaptive_engine.config import Settings, get_settings
from adaptive_engine.content.models import DistractorStrategy, QuestionKind, QuestionTemplate
from adaptive_engine.content.templates import BUILTIN_TEMPLATES, TemplateRegistry
from adaptive_engine.errors import TemplateError


class TemplateDefinition(BaseModel):
    """Validated external template definition."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    id: str = Field(min_length=1)
    subject: str = Field(min_length=1)
    skill_area: str = Field(
        min_length=1, validation_alias=AliasChoices("skill_area", "skillArea")
    )
    kind: QuestionKind = Field(
        default=QuestionKind.WORD_PROBLEM, validation_alias=AliasChoices("kind", "type")
    )
    difficulty_level: int = Field(
        default=1, ge=1, validation_alias=AliasChoices("difficulty_level", "difficultyLevel")
    )
    template: str = Field(min_length=1)
    slots: dict[str, list[str | int | float]] = Field(
        default_factory=dict, validation_alias=AliasChoices("slots", "variables")
    )
    correct_answer_formula: str = Field(
        min_length=1,
        validation_alias=AliasChoices("correct_answer_formula", "correctAnswerFormula"),
    )
    explanation_template: str = Field(
        default="",
        validation_alias=AliasChoices("explanation_template", "explanationTemplate"),
    )
    distractor_strategy: DistractorStrategy | None = Field(
        default=None,
        validation_alias=AliasChoices("distractor_strategy", "distractorStrategy"),
    )

    def to_template(self) -> QuestionTemplate:
        return QuestionTemplate(
            id=self.id,
            subject=self.subject,
            skill_area=self.skill_area,
            kind=self.kind,
            difficulty_level=self.difficulty_level,
            template=self.template,
            slots={name: tuple(values) for name, values in self.slots.items()},
            correct_answer_formula=self.correct_answer_formula,
            explanation_template=self.explanation_template,
            distractor_strategy=self.distractor_strategy,
        )


def parse_templates(payload: Any, source: str = "<memory>") -> list[QuestionTemplate]:
    """Validate already-decoded JSON into templates."""
    if isinstance(payload, dict):
        payload = payload.get("templates")
    if not isinstance(payload, list):
        raise TemplateError(f"{source}: expected a list of templates or a 'templates' list")

    templates = []
    for index, item in enumerate(payload):
        try:
            definition = TemplateDefinition.model_validate(item)
        except ValidationError as e:
            raise TemplateError(f"{source}: template #{index} is invalid: {e}") from e
        templates.append(definition.to_template())
    return templates


def load_templates(path: str | Path) -> list[QuestionTemplate]:
    """Read and validate a JSON template file."""
    path = Path(path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise TemplateError(f"Template file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise TemplateError(f"{path}: invalid JSON ({e})") from e

    templates = parse_templates(payload, source=str(path))
    logger.info(f"Loaded {len(templates)} template(s) from {path}")
    return templates


def build_template_registry(settings: Settings | None = None) -> TemplateRegistry:
    """Built-in templates followed by every file in ``settings.template_paths``."""
    settings = settings or get_settings()
    registry = TemplateRegistry(BUILTIN_TEMPLATES)
    for template_path in settings.template_paths:
        for template in load_templates(template_path):
            registry.register(template)
    logger.debug(f"Template registry ready with {len(registry)} template(s)")
    return registry
