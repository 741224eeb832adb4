"""
Restricted arithmetic expressions for answer formulas.

Formulas such as ``num1 + num2`` or ``2 * (length + width)`` are parsed
into a small typed tree and evaluated against slot values. Nothing is
ever passed to ``eval``.

Grammar:
    expression := term (("+" | "-") term)*
    term       := unary (("*" | "/" | "//" | "%") unary)*
    unary      := ("+" | "-") unary | primary
    primary    := NUMBER | NAME | NAME "(" args ")" | "(" expression ")"
    args       := expression ("," expression)*

Functions: abs, min, max, round.
"""

from __future__ import annotations

import operator
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from adaptive_engine.errors import TemplateError

Numeric = int | float

TOKEN_PATTERN = re.compile(
    r"\s*(?:(?P<number>\d+(?:\.\d+)?)|(?P<name>[A-Za-z_]\w*)|(?P<op>//|[-+*/%(),]))"
)

BINARY_OPERATORS: dict[str, Callable[[Numeric, Numeric], Numeric]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
    "//": operator.floordiv,
    "%": operator.mod,
}

# name -> (callable, min args, max args)
FUNCTIONS: dict[str, tuple[Callable[..., Numeric], int, int]] = {
    "abs": (abs, 1, 1),
    "min": (min, 2, 8),
    "max": (max, 2, 8),
    "round": (round, 1, 2),
}


def normalize_number(value: Numeric) -> Numeric:
    """Collapse integral floats to int so 6.0 renders as 6."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


# =============================================================================
# Expression Tree
# =============================================================================


class Expression(ABC):
    """A node of a parsed formula."""

    @abstractmethod
    def evaluate(self, values: Mapping[str, Any]) -> Numeric:
        ...

    @abstractmethod
    def slot_names(self) -> set[str]:
        ...


@dataclass(frozen=True)
class Number(Expression):
    value: Numeric

    def evaluate(self, values: Mapping[str, Any]) -> Numeric:
        return self.value

    def slot_names(self) -> set[str]:
        return set()


@dataclass(frozen=True)
class SlotRef(Expression):
    name: str

    def evaluate(self, values: Mapping[str, Any]) -> Numeric:
        if self.name not in values:
            raise TemplateError(f"Formula references unknown slot '{self.name}'")
        value = values[self.name]
        # bool is an int subclass but never a meaningful operand
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TemplateError(
                f"Slot '{self.name}' has non-numeric value {value!r} used in a formula"
            )
        return value

    def slot_names(self) -> set[str]:
        return {self.name}


@dataclass(frozen=True)
class UnaryOp(Expression):
    op: str
    operand: Expression

    def evaluate(self, values: Mapping[str, Any]) -> Numeric:
        value = self.operand.evaluate(values)
        return -value if self.op == "-" else value

    def slot_names(self) -> set[str]:
        return self.operand.slot_names()


@dataclass(frozen=True)
class BinaryOp(Expression):
    op: str
    left: Expression
    right: Expression

    def evaluate(self, values: Mapping[str, Any]) -> Numeric:
        left = self.left.evaluate(values)
        right = self.right.evaluate(values)
        if self.op in ("/", "//", "%") and right == 0:
            raise TemplateError(f"Division by zero in formula ({self.op})")
        try:
            result = BINARY_OPERATORS[self.op](left, right)
        except (TypeError, ValueError, OverflowError) as e:
            raise TemplateError(f"Cannot evaluate {left!r} {self.op} {right!r} in formula: {e}") from e
        return normalize_number(result)

    def slot_names(self) -> set[str]:
        return self.left.slot_names() | self.right.slot_names()


@dataclass(frozen=True)
class Call(Expression):
    name: str
    args: tuple[Expression, ...]

    def evaluate(self, values: Mapping[str, Any]) -> Numeric:
        func, _, _ = FUNCTIONS[self.name]
        args = [arg.evaluate(values) for arg in self.args]
        try:
            result = func(*args)
        except (TypeError, ValueError, OverflowError) as e:
            raise TemplateError(f"Cannot evaluate {self.name}() in formula: {e}") from e
        return normalize_number(result)

    def slot_names(self) -> set[str]:
        names: set[str] = set()
        for arg in self.args:
            names |= arg.slot_names()
        return names


# =============================================================================
# Parser
# =============================================================================


def tokenize(text: str) -> list[tuple[str, str]]:
    """Split a formula into (kind, text) tokens."""
    tokens: list[tuple[str, str]] = []
    position = 0
    stripped = text.rstrip()
    while position < len(stripped):
        match = TOKEN_PATTERN.match(stripped, position)
        if match is None:
            raise TemplateError(
                f"Unexpected character {stripped[position:].lstrip()[:1]!r} in formula {text!r}"
            )
        kind = match.lastgroup
        tokens.append((kind, match.group(kind)))
        position = match.end()
    return tokens


class _Parser:
    def __init__(self, text: str):
        self.text = text
        self.tokens = tokenize(text)
        self.index = 0

    def peek(self) -> str | None:
        if self.index < len(self.tokens):
            return self.tokens[self.index][1]
        return None

    def advance(self) -> tuple[str, str]:
        if self.index >= len(self.tokens):
            raise TemplateError(f"Unexpected end of formula {self.text!r}")
        token = self.tokens[self.index]
        self.index += 1
        return token

    def expect(self, symbol: str) -> None:
        kind, value = self.advance()
        if kind != "op" or value != symbol:
            raise TemplateError(f"Expected '{symbol}' but found '{value}' in formula {self.text!r}")

    def parse(self) -> Expression:
        if not self.tokens:
            raise TemplateError("Formula is empty")
        node = self.expression()
        if self.index != len(self.tokens):
            raise TemplateError(
                f"Unexpected token '{self.tokens[self.index][1]}' in formula {self.text!r}"
            )
        return node

    def expression(self) -> Expression:
        node = self.term()
        while self.peek() in ("+", "-"):
            _, op = self.advance()
            node = BinaryOp(op, node, self.term())
        return node

    def term(self) -> Expression:
        node = self.unary()
        while self.peek() in ("*", "/", "//", "%"):
            _, op = self.advance()
            node = BinaryOp(op, node, self.unary())
        return node

    def unary(self) -> Expression:
        if self.peek() in ("+", "-"):
            _, op = self.advance()
            return UnaryOp(op, self.unary())
        return self.primary()

    def primary(self) -> Expression:
        kind, value = self.advance()

        if kind == "number":
            return Number(normalize_number(float(value)) if "." in value else int(value))

        if kind == "name":
            if self.peek() == "(":
                return self.call(value)
            return SlotRef(value)

        if value == "(":
            node = self.expression()
            self.expect(")")
            return node

        raise TemplateError(f"Unexpected token '{value}' in formula {self.text!r}")

    def call(self, name: str) -> Expression:
        if name not in FUNCTIONS:
            raise TemplateError(f"Unknown function '{name}' in formula {self.text!r}")
        self.expect("(")
        args = [self.expression()]
        while self.peek() == ",":
            self.advance()
            args.append(self.expression())
        self.expect(")")

        _, min_args, max_args = FUNCTIONS[name]
        if not min_args <= len(args) <= max_args:
            raise TemplateError(
                f"Function '{name}' takes {min_args}-{max_args} arguments, got {len(args)}"
            )
        return Call(name, tuple(args))


def parse_formula(text: str) -> Expression:
    """Parse ``text`` into an expression tree or raise TemplateError."""
    if not isinstance(text, str):
        raise TemplateError(f"Formula must be a string, got {type(text).__name__}")
    return _Parser(text).parse()


def evaluate_formula(text: str, values: Mapping[str, Any]) -> Numeric:
    """Parse and evaluate in one step."""
    return parse_formula(text).evaluate(values)

