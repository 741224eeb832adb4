"""
Deterministic question content.

Templates + seeds -> reproducible multiple-choice questions.
"""

from adaptive_engine.content.compiler import QuestionCompiler, compile_question, validate_template
from adaptive_engine.content.expression import Expression, parse_formula
from adaptive_engine.content.models import (
    CompiledQuestion,
    DistractorStrategy,
    QuestionKind,
    QuestionTemplate,
    format_number,
)
from adaptive_engine.content.prng import SeededRandom
from adaptive_engine.content.question_pool import PoolStatistics, QuestionPool
from adaptive_engine.content.template_loader import (
    TemplateDefinition,
    build_template_registry,
    load_templates,
    parse_templates,
)
from adaptive_engine.content.templates import BUILTIN_TEMPLATES, TemplateRegistry

__all__ = [
    "BUILTIN_TEMPLATES",
    "CompiledQuestion",
    "DistractorStrategy",
    "Expression",
    "PoolStatistics",
    "QuestionCompiler",
    "QuestionKind",
    "QuestionPool",
    "QuestionTemplate",
    "SeededRandom",
    "TemplateDefinition",
    "TemplateRegistry",
    "build_template_registry",
    "compile_question",
    "format_number",
    "load_templates",
    "parse_formula",
    "parse_templates",
    "validate_template",
]
