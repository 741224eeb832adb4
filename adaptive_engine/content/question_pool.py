"""
Precompiled Question Pool.

Compiles ``batch_size`` questions (seeds 0..N-1) for every registered
template at startup and serves them from memory, so no question request
ever waits on a live generation step.

Pool order is deterministic: templates in registration order, then seed.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Any, Iterator

from loguru import logger

from adaptive_engine.content.compiler import QuestionCompiler
from adaptive_engine.content.models import CompiledQuestion
from adaptive_engine.content.templates import TemplateRegistry

DEFAULT_BATCH_SIZE = 50


@dataclass
class PoolStatistics:
    """Statistics for the precompiled pool."""
    total_templates: int
    total_questions: int
    questions_per_template: dict[str, int] = field(default_factory=dict)
    subject_distribution: dict[str, int] = field(default_factory=dict)  # subject -> questions
    difficulty_distribution: dict[int, int] = field(default_factory=dict)  # level -> questions

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class QuestionPool:
    """In-memory cache of compiled questions, keyed by template."""

    def __init__(
        self,
        registry: TemplateRegistry,
        compiler: QuestionCompiler | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        wildcard_skill_area: str | None = None,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.registry = registry
        self.compiler = compiler or QuestionCompiler()
        self.batch_size = batch_size
        self.wildcard_skill_area = wildcard_skill_area
        self._by_template: dict[str, list[CompiledQuestion]] = {}
        self._by_id: dict[str, CompiledQuestion] = {}

    @property
    def is_compiled(self) -> bool:
        return bool(self._by_template)

    def precompile(self) -> PoolStatistics:
        """
        Compile every template. Errors propagate: a broken template is an
        authoring bug and must stop startup.
        """
        by_template: dict[str, list[CompiledQuestion]] = {}
        by_id: dict[str, CompiledQuestion] = {}

        for template in self.registry:
            questions = self.compiler.compile_batch(template, self.batch_size)
            by_template[template.id] = questions
            by_id.update((q.id, q) for q in questions)
            logger.debug(f"Pre-compiled {len(questions)} questions for template {template.id}")

        self._by_template = by_template
        self._by_id = by_id

        stats = self.statistics()
        logger.info(
            f"Question pool ready: {stats.total_questions} questions "
            f"from {stats.total_templates} templates"
        )
        return stats

    # ========================================
    # Lookup
    # ========================================

    def matches_skill(self, requested: str, actual: str) -> bool:
        if self.wildcard_skill_area is not None and requested == self.wildcard_skill_area:
            return True
        return requested == actual

    def questions_for(
        self,
        subject: str,
        skill_area: str,
        max_difficulty: int,
    ) -> Iterator[CompiledQuestion]:
        """Yield candidate questions in pool order."""
        for template in self.registry:
            if template.subject != subject:
                continue
            if not self.matches_skill(skill_area, template.skill_area):
                continue
            if template.difficulty_level > max_difficulty:
                continue
            yield from self._by_template.get(template.id, ())

    def questions_for_template(self, template_id: str) -> list[CompiledQuestion]:
        return list(self._by_template.get(template_id, ()))

    def get(self, question_id: str) -> CompiledQuestion | None:
        return self._by_id.get(question_id)

    @property
    def total_questions(self) -> int:
        return len(self._by_id)

    def __len__(self) -> int:
        return self.total_questions

    def statistics(self) -> PoolStatistics:
        subjects: Counter[str] = Counter()
        difficulties: Counter[int] = Counter()
        per_template: dict[str, int] = {}

        for template in self.registry:
            count = len(self._by_template.get(template.id, ()))
            per_template[template.id] = count
            subjects[template.subject] += count
            difficulties[template.difficulty_level] += count

        return PoolStatistics(
            total_templates=len(self.registry),
            total_questions=self.total_questions,
            questions_per_template=per_template,
            subject_distribution=dict(subjects),
            difficulty_distribution=dict(sorted(difficulties.items())),
        )
