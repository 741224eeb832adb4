"""
Deterministic Question Compiler.

Expands a QuestionTemplate into a concrete CompiledQuestion for a seed.

Design Philosophy:
- Deterministic: the same (template, seed) always yields an equal question
- One generator per compile: slot draws, distractor deltas and the option
  shuffle all consume the same SeededRandom stream, in that order
- Fail fast: authoring bugs raise TemplateError, impossible distractor
  sets raise DistractorExhaustionError; nothing returns fewer options
"""

from __future__ import annotations

import math
import re
from functools import lru_cache

from loguru import logger

from adaptive_engine.content.expression import Expression, Numeric, normalize_number, parse_formula
from adaptive_engine.content.models import (
    CompiledQuestion,
    DistractorStrategy,
    QuestionTemplate,
    format_number,
    render_value,
)
from adaptive_engine.content.prng import SeededRandom
from adaptive_engine.errors import DistractorExhaustionError, TemplateError

PLACEHOLDER_PATTERN = re.compile(r"\{(\w+)\}")
ANSWER_PLACEHOLDER = "answer"

DEFAULT_DISTRACTOR_COUNT = 3
DEFAULT_MAX_BACKFILL_OFFSET = 25
MAX_RANDOM_DELTA = 10
FIXED_OFFSETS = (5, -3)  # plus correct * 2


@lru_cache(maxsize=256)
def _parse_cached(formula: str) -> Expression:
    return parse_formula(formula)


def placeholders(text: str) -> list[str]:
    """Placeholder names in order of appearance."""
    return PLACEHOLDER_PATTERN.findall(text)


def validate_template(template: QuestionTemplate) -> Expression:
    """
    Check a template without drawing any values.

    Returns:
        The parsed answer formula

    Raises:
        TemplateError: on any malformed part of the template
    """
    if not template.id:
        raise TemplateError("Template id must not be empty")
    if template.difficulty_level < 1:
        raise TemplateError(
            f"Template '{template.id}': difficulty_level must be >= 1, got {template.difficulty_level}"
        )
    if not template.template.strip():
        raise TemplateError(f"Template '{template.id}': question text is empty")

    for name, pool in template.slots.items():
        if not pool:
            raise TemplateError(f"Template '{template.id}': slot '{name}' has an empty value pool")
    if ANSWER_PLACEHOLDER in template.slots:
        raise TemplateError(f"Template '{template.id}': '{ANSWER_PLACEHOLDER}' is reserved")

    try:
        formula = _parse_cached(template.correct_answer_formula)
    except TemplateError as e:
        raise TemplateError(f"Template '{template.id}': {e}") from e

    unknown = formula.slot_names() - set(template.slots)
    if unknown:
        raise TemplateError(
            f"Template '{template.id}': formula references unknown slot(s) {sorted(unknown)}"
        )

    for name in placeholders(template.template):
        if name not in template.slots:
            raise TemplateError(
                f"Template '{template.id}': question text references unknown slot '{name}'"
            )
    for name in placeholders(template.explanation_template):
        if name != ANSWER_PLACEHOLDER and name not in template.slots:
            raise TemplateError(
                f"Template '{template.id}': explanation references unknown slot '{name}'"
            )

    return formula


def _substitute(text: str, values: dict[str, str]) -> str:
    return PLACEHOLDER_PATTERN.sub(lambda match: values[match.group(1)], text)


class QuestionCompiler:
    """
    Compiles templates into questions.

    Distractor policy (target ``distractor_count``), by the template's
    resolved strategy:

    random_offset (word problems by default):
    1. correct + randint(1, 10)
    2. max(1, correct - randint(1, 10))
    3. floor(correct * (0.5 + random() * 0.5))

    fixed_offset (every other kind by default):
    correct + 5, correct - 3, correct * 2

    Duplicates, the correct answer itself and (for a positive answer)
    non-positive values are rejected, then the list is back-filled with
    correct +/- 1, 2, ... up to ``max_backfill_offset``.
    """

    def __init__(
        self,
        distractor_count: int = DEFAULT_DISTRACTOR_COUNT,
        max_backfill_offset: int = DEFAULT_MAX_BACKFILL_OFFSET,
    ):
        if distractor_count < 1:
            raise ValueError("distractor_count must be >= 1")
        self.distractor_count = distractor_count
        self.max_backfill_offset = max_backfill_offset

    def compile(self, template: QuestionTemplate, seed: int) -> CompiledQuestion:
        formula = validate_template(template)
        rng = SeededRandom(seed)

        values = {name: rng.choice(pool) for name, pool in template.slots.items()}
        rendered = {name: render_value(value) for name, value in values.items()}

        answer = formula.evaluate(values)
        if isinstance(answer, float) and not math.isfinite(answer):
            raise TemplateError(
                f"Template '{template.id}': answer for seed {seed} is not a finite number ({answer!r})"
            )
        answer_text = format_number(answer)

        question_text = _substitute(template.template, rendered)
        explanation = _substitute(
            template.explanation_template, {**rendered, ANSWER_PLACEHOLDER: answer_text}
        )

        distractors = self._distractors(template, seed, answer, rng)
        options = rng.shuffle([answer_text, *distractors])

        return CompiledQuestion(
            id=f"{template.id}:{seed}",
            template_id=template.id,
            seed=seed,
            question_text=question_text,
            options=tuple(options),
            correct_index=options.index(answer_text),
            explanation=explanation,
            subject=template.subject,
            skill_area=template.skill_area,
            difficulty_level=template.difficulty_level,
            kind=template.kind,
        )

    def compile_batch(self, template: QuestionTemplate, count: int) -> list[CompiledQuestion]:
        """Compile seeds 0..count-1."""
        return [self.compile(template, seed) for seed in range(count)]

    def _distractors(
        self,
        template: QuestionTemplate,
        seed: int,
        answer: Numeric,
        rng: SeededRandom,
    ) -> list[str]:
        answer_text = format_number(answer)
        accepted: list[str] = []

        def offer(candidate: Numeric) -> None:
            if len(accepted) >= self.distractor_count:
                return
            if answer > 0 and candidate <= 0:
                return
            text = format_number(normalize_number(candidate))
            if text != answer_text and text not in accepted:
                accepted.append(text)

        # Three draws are consumed whatever the strategy.
        up = rng.randint(1, MAX_RANDOM_DELTA)
        down = rng.randint(1, MAX_RANDOM_DELTA)
        scale = 0.5 + rng.random() * 0.5

        if template.resolved_distractor_strategy == DistractorStrategy.FIXED_OFFSET:
            candidates = [answer + offset for offset in FIXED_OFFSETS] + [answer * 2]
        else:
            candidates = [answer + up, max(1, answer - down), math.floor(answer * scale)]
        for candidate in candidates:
            offer(candidate)

        if len(accepted) < self.distractor_count:
            logger.debug(
                f"Back-filling distractors for {template.id}:{seed} "
                f"({len(accepted)}/{self.distractor_count} after random pass)"
            )
            for offset in range(1, self.max_backfill_offset + 1):
                if len(accepted) >= self.distractor_count:
                    break
                offer(answer + offset)
                offer(answer - offset)

        if len(accepted) < self.distractor_count:
            raise DistractorExhaustionError(
                template.id, seed, self.distractor_count, len(accepted)
            )
        return accepted


_default_compiler = QuestionCompiler()


def compile_question(template: QuestionTemplate, seed: int) -> CompiledQuestion:
    """Compile with the default distractor policy."""
    return _default_compiler.compile(template, seed)
