#!/usr/bin/env python3

"""Tokenizer for normalized C/C++ declaration text."""

from __future__ import annotations

import re

from ...models.source import Token, TokenKind

TOKEN_SPEC = [
    ("NUMBER", r"0[xX][0-9a-fA-F]+[uUlL]*|\d+[uUlL]*"),
    ("IDENT", r"[A-Za-z_$][\w$]*"),
    ("STRING", r"\"(?:\\.|[^\"\\])*\"|'(?:\\.|[^'\\])*'"),
    ("PUNCT", r"::|\.\.\.|<<|>>|->|\[\[|\]\]|[{}()\[\];,:*&=<>+\-/%|^~!?.#]"),
    ("SKIP", r"\s+"),
    ("OTHER", r"."),
]

TOKEN_RE = re.compile("|".join(f"(?P<{name}>{pat})" for name, pat in TOKEN_SPEC), re.DOTALL)

_KINDS = {
    "NUMBER": TokenKind.NUMBER,
    "IDENT": TokenKind.IDENT,
    "STRING": TokenKind.STRING,
    "PUNCT": TokenKind.PUNCT,
    "OTHER": TokenKind.OTHER,
}


def tokenize(text: str, base: int = 0) -> list[Token]:
    """Split text into positioned tokens.

    Unknown characters become OTHER tokens rather than errors; the declaration
    grammar simply fails to match them.

    Args:
        text: Normalized source text
        base: Offset added to every token position

    Returns:
        Tokens in source order, whitespace dropped
    """
    tokens: list[Token] = []
    for match in TOKEN_RE.finditer(text):
        kind = match.lastgroup
        if kind == "SKIP" or kind is None:
            continue
        tokens.append(Token(_KINDS[kind], match.group(), base + match.start()))
    return tokens


def parse_int_literal(text: str) -> int:
    """Parse a C integer literal (decimal, hex or octal), ignoring u/l suffixes."""
    digits = text.rstrip("uUlL")
    if digits[:2].lower() == "0x":
        return int(digits, 16)
    if len(digits) > 1 and digits.startswith("0"):
        return int(digits, 8)
    return int(digits)
