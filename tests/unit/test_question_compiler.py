"""
Unit tests for the deterministic question compiler.

Run: pytest tests/unit/test_question_compiler.py -v
"""

import re

import pytest

from adaptive_engine.content.compiler import QuestionCompiler, compile_question, validate_template
from adaptive_engine.content.models import DistractorStrategy, QuestionKind, format_number
from adaptive_engine.content.templates import (
    BUILTIN_TEMPLATES,
    MATH_ADDITION_GEMS,
    MATH_MULTIPLICATION_GROUPS,
    MATH_SUBTRACTION_ADVENTURE,
)
from adaptive_engine.errors import DistractorExhaustionError, TemplateError


@pytest.fixture
def compiler():
    return QuestionCompiler()


class TestDeterminism:
    """Same (template, seed) -> identical question."""

    @pytest.mark.parametrize("template", BUILTIN_TEMPLATES, ids=lambda t: t.id)
    def test_repeat_compile_is_identical(self, compiler, template):
        for seed in range(50):
            first = compiler.compile(template, seed)
            second = compiler.compile(template, seed)
            assert first == second
            assert first.to_dict() == second.to_dict()

    def test_separate_compilers_agree(self):
        a = QuestionCompiler().compile(MATH_ADDITION_GEMS, 17)
        b = QuestionCompiler().compile(MATH_ADDITION_GEMS, 17)
        assert a.options == b.options
        assert a.correct_index == b.correct_index

    def test_question_id_is_template_and_seed(self, compiler):
        question = compiler.compile(MATH_ADDITION_GEMS, 12)
        assert question.id == "math_addition_gems:12"
        assert question.template_id == "math_addition_gems"
        assert question.seed == 12

    def test_seeds_vary_option_order(self, compiler):
        indexes = {compiler.compile(MATH_ADDITION_GEMS, seed).correct_index for seed in range(50)}
        assert len(indexes) > 1


class TestOptions:
    """Answer options and correctness."""

    @pytest.mark.parametrize("template", BUILTIN_TEMPLATES, ids=lambda t: t.id)
    def test_options_distinct_and_complete(self, compiler, template):
        for seed in range(50):
            question = compiler.compile(template, seed)
            assert len(question.options) == 4
            assert len(set(question.options)) == 4
            assert 0 <= question.correct_index < 4

    @pytest.mark.parametrize(
        "template, combine",
        [
            (MATH_ADDITION_GEMS, lambda a, b: a + b),
            (MATH_SUBTRACTION_ADVENTURE, lambda a, b: a - b),
            (MATH_MULTIPLICATION_GROUPS, lambda a, b: a * b),
        ],
        ids=["addition", "subtraction", "multiplication"],
    )
    def test_correct_option_matches_question_numbers(self, compiler, template, combine):
        """Built-in word problems mention exactly two numbers, in formula order."""
        for seed in range(50):
            question = compiler.compile(template, seed)
            first, second = (int(n) for n in re.findall(r"\d+", question.question_text))
            assert question.correct_option == str(combine(first, second))

    def test_single_value_template(self, compiler, make_template):
        question = compiler.compile(make_template(), 0)
        assert question.question_text == "What is 7 + 5?"
        assert question.explanation == "7 + 5 = 12"
        assert question.correct_option == "12"

    def test_positive_answer_has_positive_distractors(self, compiler, make_template):
        template = make_template(slots={"a": (1,)}, template="Pick {a}", correct_answer_formula="a",
                                 explanation_template="{answer}")
        for seed in range(30):
            question = compiler.compile(template, seed)
            assert question.correct_option == "1"
            assert all(float(option) > 0 for option in question.options)
            assert len(set(question.options)) == 4

    def test_zero_answer(self, compiler, make_template):
        template = make_template(slots={"a": (5,)}, template="{a} - {a}?", correct_answer_formula="a - a",
                                 explanation_template="{answer}")
        question = compiler.compile(template, 3)
        assert question.correct_option == "0"
        assert len(set(question.options)) == 4

    def test_fractional_answer(self, compiler, make_template):
        template = make_template(
            slots={"a": (7,), "b": (2,)},
            template="{a} / {b}?",
            correct_answer_formula="a / b",
            explanation_template="{a} / {b} = {answer}",
        )
        question = compiler.compile(template, 4)
        assert question.correct_option == "3.5"
        assert question.explanation == "7 / 2 = 3.5"
        assert len(set(question.options)) == 4

    def test_custom_distractor_count(self, make_template):
        question = QuestionCompiler(distractor_count=5).compile(make_template(), 8)
        assert len(question.options) == 6
        assert len(set(question.options)) == 6

    def test_distractor_exhaustion(self, make_template):
        compiler = QuestionCompiler(distractor_count=20, max_backfill_offset=2)
        with pytest.raises(DistractorExhaustionError) as exc_info:
            compiler.compile(make_template(), 0)
        assert exc_info.value.wanted == 20
        assert exc_info.value.produced < 20
        assert exc_info.value.template_id == "test_sum"

    def test_invalid_distractor_count(self):
        with pytest.raises(ValueError):
            QuestionCompiler(distractor_count=0)


class TestMetadata:
    """Template metadata carried onto compiled questions."""

    def test_metadata(self, compiler):
        question = compiler.compile(MATH_MULTIPLICATION_GROUPS, 2)
        assert question.subject == "math"
        assert question.skill_area == "multiplication"
        assert question.difficulty_level == 2
        assert question.kind == QuestionKind.WORD_PROBLEM

    def test_to_dict(self, compiler, make_template):
        data = compiler.compile(make_template(), 0).to_dict()
        assert data["id"] == "test_sum:0"
        assert data["kind"] == "calculation"
        assert isinstance(data["options"], list)

    def test_compile_batch(self, compiler):
        batch = compiler.compile_batch(MATH_ADDITION_GEMS, 10)
        assert [q.seed for q in batch] == list(range(10))
        assert len({q.id for q in batch}) == 10

    def test_module_level_compile(self, make_template):
        assert compile_question(make_template(), 1) == QuestionCompiler().compile(make_template(), 1)


class TestTemplateErrors:
    """Authoring bugs raise TemplateError."""

    def test_unknown_question_placeholder(self, compiler, make_template):
        with pytest.raises(TemplateError, match="question text"):
            compiler.compile(make_template(template="What is {num1} + {num3}?"), 0)

    def test_unknown_explanation_placeholder(self, compiler, make_template):
        with pytest.raises(TemplateError, match="explanation"):
            compiler.compile(make_template(explanation_template="{total} = {answer}"), 0)

    def test_empty_pool(self, compiler, make_template):
        with pytest.raises(TemplateError, match="empty value pool"):
            compiler.compile(make_template(slots={"num1": (), "num2": (5,)}), 0)

    def test_bad_formula(self, compiler, make_template):
        with pytest.raises(TemplateError):
            compiler.compile(make_template(correct_answer_formula="num1 +"), 0)

    def test_formula_unknown_slot(self, compiler, make_template):
        with pytest.raises(TemplateError, match="unknown slot"):
            compiler.compile(make_template(correct_answer_formula="num1 + num9"), 0)

    def test_non_numeric_slot_in_formula(self, compiler, make_template):
        template = make_template(slots={"num1": ("seven",), "num2": (5,)})
        with pytest.raises(TemplateError):
            compiler.compile(template, 0)

    def test_reserved_answer_slot(self, make_template):
        with pytest.raises(TemplateError, match="reserved"):
            validate_template(make_template(slots={"num1": (1,), "num2": (2,), "answer": (3,)}))

    def test_zero_difficulty(self, make_template):
        with pytest.raises(TemplateError):
            validate_template(make_template(difficulty_level=0))


class TestFormatNumber:
    """Rendering of numeric answers."""

    @pytest.mark.parametrize(
        "value, expected",
        [(12, "12"), (12.0, "12"), (3.5, "3.5"), (2.25, "2.25"), (1 / 3, "0.33"), (-4, "-4")],
    )
    def test_format(self, value, expected):
        assert format_number(value) == expected


class TestDistractorStrategy:
    """Per-template wrong-answer policy."""

    def test_calculation_uses_fixed_offsets(self, compiler, make_template):
        template = make_template()
        assert template.resolved_distractor_strategy == DistractorStrategy.FIXED_OFFSET

        for seed in range(10):
            question = compiler.compile(template, seed)
            assert set(question.options) == {"12", "17", "9", "24"}

    def test_word_problem_uses_random_offsets(self, make_template):
        template = make_template(kind=QuestionKind.WORD_PROBLEM)
        assert template.resolved_distractor_strategy == DistractorStrategy.RANDOM_OFFSET

    def test_explicit_strategy_overrides_kind(self, compiler, make_template):
        template = make_template(
            kind=QuestionKind.WORD_PROBLEM, distractor_strategy=DistractorStrategy.FIXED_OFFSET
        )
        assert set(compiler.compile(template, 3).options) == {"12", "17", "9", "24"}

    def test_strategy_does_not_change_option_order(self, compiler, make_template):
        """Both strategies consume the same draws, so the shuffle matches."""
        fixed = make_template(distractor_strategy=DistractorStrategy.FIXED_OFFSET)
        randomized = make_template(distractor_strategy=DistractorStrategy.RANDOM_OFFSET)
        for seed in range(20):
            assert compiler.compile(fixed, seed).correct_index == compiler.compile(randomized, seed).correct_index

    def test_fixed_offsets_backfill_small_answers(self, compiler, make_template):
        template = make_template(slots={"a": (1,)}, template="Pick {a}", correct_answer_formula="a",
                                 explanation_template="{answer}")
        question = compiler.compile(template, 0)
        assert set(question.options) == {"1", "6", "2", "3"}


class TestNonFiniteAnswers:
    """Formulas must produce a usable number."""

    def test_infinite_answer(self, compiler, make_template):
        template = make_template(slots={"a": (1e200,)}, template="What is {a} squared?",
                                 correct_answer_formula="a * a", explanation_template="{answer}")
        with pytest.raises(TemplateError, match="not a finite number"):
            compiler.compile(template, 0)

    def test_nan_answer(self, compiler, make_template):
        template = make_template(slots={"a": (1e200,)}, template="{a}?",
                                 correct_answer_formula="a * a - a * a", explanation_template="{answer}")
        with pytest.raises(TemplateError, match="not a finite number"):
            compiler.compile(template, 0)

    def test_bad_function_argument(self, compiler, make_template):
        template = make_template(slots={"a": (7.25,)}, template="Round {a}",
                                 correct_answer_formula="round(a, 1.5)", explanation_template="{answer}")
        with pytest.raises(TemplateError):
            compiler.compile(template, 0)
