#!/usr/bin/env python3

"""Integer constant expression evaluation for array dimensions and enums."""

from __future__ import annotations

from collections.abc import Mapping

from ...models.source import Token, TokenKind
from .tokenizer import parse_int_literal


class _UnknownConstant(Exception):
    """Raised internally when an expression refers to an unknown name."""


class ConstantExpressionEvaluator:
    """Precedence-climbing evaluator over declaration tokens.

    Supports integer literals, known constants (enumerators), parentheses,
    unary ``+ - ~ !`` and the usual arithmetic, shift and bitwise operators.
    """

    PRECEDENCE = {
        "|": 1,
        "^": 2,
        "&": 3,
        "<<": 4, ">>": 4,
        "+": 5, "-": 5,
        "*": 6, "/": 6, "%": 6,
    }

    def __init__(self, tokens: list[Token], constants: Mapping[str, int] | None = None):
        self.tokens = tokens
        self.constants = constants or {}
        self.i = 0

    def cur(self) -> Token | None:
        return self.tokens[self.i] if self.i < len(self.tokens) else None

    def evaluate(self) -> int | None:
        """Evaluate the whole token list.

        Returns:
            Integer value, or None if the expression is empty, malformed or
            references an unknown identifier
        """
        if not self.tokens:
            return None
        try:
            value = self.parse_expr()
        except (_UnknownConstant, ZeroDivisionError, ValueError, IndexError):
            return None
        if self.cur() is not None:
            return None
        return value

    def parse_expr(self, min_prec: int = 0) -> int:
        value = self.parse_unary()
        while True:
            t = self.cur()
            if t is None or t.kind is not TokenKind.PUNCT or t.value not in self.PRECEDENCE:
                return value
            prec = self.PRECEDENCE[t.value]
            if prec < min_prec:
                return value
            self.i += 1
            rhs = self.parse_expr(prec + 1)
            value = self._apply(t.value, value, rhs)

    def parse_unary(self) -> int:
        t = self.cur()
        if t is None:
            raise IndexError("unexpected end of expression")
        if t.kind is TokenKind.PUNCT and t.value in ("+", "-", "~", "!"):
            self.i += 1
            operand = self.parse_unary()
            if t.value == "-":
                return -operand
            if t.value == "~":
                return ~operand
            if t.value == "!":
                return int(not operand)
            return operand
        return self.parse_primary()

    def parse_primary(self) -> int:
        t = self.cur()
        if t is None:
            raise IndexError("unexpected end of expression")
        self.i += 1
        if t.kind is TokenKind.NUMBER:
            return parse_int_literal(t.value)
        if t.kind is TokenKind.IDENT:
            if t.value in self.constants:
                return self.constants[t.value]
            raise _UnknownConstant(t.value)
        if t.is_punct("("):
            value = self.parse_expr()
            closing = self.cur()
            if closing is None or not closing.is_punct(")"):
                raise ValueError("unbalanced parentheses")
            self.i += 1
            return value
        raise ValueError(f"unexpected token {t.value!r}")

    @staticmethod
    def _apply(op: str, lhs: int, rhs: int) -> int:
        if op == "+":
            return lhs + rhs
        if op == "-":
            return lhs - rhs
        if op == "*":
            return lhs * rhs
        if op == "/":
            return int(lhs / rhs)
        if op == "%":
            return lhs - int(lhs / rhs) * rhs
        if op == "<<":
            return lhs << rhs
        if op == ">>":
            return lhs >> rhs
        if op == "&":
            return lhs & rhs
        if op == "^":
            return lhs ^ rhs
        return lhs | rhs


def evaluate_constant(tokens: list[Token], constants: Mapping[str, int] | None = None) -> int | None:
    """Evaluate an integer constant expression, None if it cannot be computed."""
    return ConstantExpressionEvaluator(tokens, constants).evaluate()
