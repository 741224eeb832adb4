"""
Unit tests for the precompiled question pool.

Run: pytest tests/unit/test_question_pool.py -v
"""

import pytest

from adaptive_engine.content.compiler import QuestionCompiler
from adaptive_engine.content.question_pool import QuestionPool
from adaptive_engine.content.templates import BUILTIN_TEMPLATES, TemplateRegistry
from adaptive_engine.errors import TemplateError


@pytest.fixture
def pool():
    pool = QuestionPool(
        TemplateRegistry(BUILTIN_TEMPLATES),
        QuestionCompiler(),
        batch_size=10,
        wildcard_skill_area="general",
    )
    pool.precompile()
    return pool


class TestPrecompile:
    """Startup compilation."""

    def test_statistics(self, pool):
        stats = pool.statistics()
        assert stats.total_templates == 5
        assert stats.total_questions == 50
        assert set(stats.questions_per_template.values()) == {10}
        assert stats.subject_distribution == {"math": 50}
        assert stats.difficulty_distribution == {1: 20, 2: 20, 3: 10}

    def test_precompile_returns_statistics(self):
        pool = QuestionPool(TemplateRegistry(BUILTIN_TEMPLATES), batch_size=3)
        assert not pool.is_compiled
        stats = pool.precompile()
        assert pool.is_compiled
        assert stats.total_questions == 15
        assert len(pool) == 15

    def test_seeds_are_zero_to_n(self, pool):
        questions = pool.questions_for_template("math_addition_gems")
        assert [q.seed for q in questions] == list(range(10))

    def test_matches_direct_compile(self, pool):
        direct = QuestionCompiler().compile(BUILTIN_TEMPLATES[0], 4)
        assert pool.get(direct.id) == direct

    def test_broken_template_stops_precompile(self, make_template):
        registry = TemplateRegistry([make_template(slots={"num1": ("x",), "num2": (1,)})])
        with pytest.raises(TemplateError):
            QuestionPool(registry, batch_size=2).precompile()

    def test_invalid_batch_size(self):
        with pytest.raises(ValueError):
            QuestionPool(TemplateRegistry(), batch_size=0)

    def test_to_dict(self, pool):
        data = pool.statistics().to_dict()
        assert data["total_questions"] == 50


class TestLookup:
    """Filtering and lookup."""

    def test_filter_by_skill(self, pool):
        questions = list(pool.questions_for("math", "addition", 1))
        assert len(questions) == 10
        assert all(q.template_id == "math_addition_gems" for q in questions)

    def test_difficulty_ceiling(self, pool):
        assert list(pool.questions_for("math", "multiplication", 1)) == []
        assert len(list(pool.questions_for("math", "multiplication", 2))) == 10

    def test_wildcard_skill_area(self, pool):
        questions = list(pool.questions_for("math", "general", 2))
        assert len(questions) == 40
        assert questions[0].id == "math_addition_gems:0"
        assert questions[-1].template_id == "math_fair_share"

    def test_wildcard_disabled(self):
        pool = QuestionPool(TemplateRegistry(BUILTIN_TEMPLATES), batch_size=2)
        pool.precompile()
        assert list(pool.questions_for("math", "general", 5)) == []

    def test_unknown_subject(self, pool):
        assert list(pool.questions_for("history", "addition", 5)) == []

    def test_get_unknown(self, pool):
        assert pool.get("nope:0") is None
