#!/usr/bin/env python3

"""Token model produced by the C declaration tokenizer."""

from dataclasses import dataclass
from enum import Enum


class TokenKind(Enum):
    """Lexical categories the declaration grammar cares about."""

    IDENT = "ident"
    NUMBER = "number"
    STRING = "string"
    PUNCT = "punct"
    OTHER = "other"


@dataclass(frozen=True)
class Token:
    """A lexical token with its offset into the normalized text."""

    kind: TokenKind
    value: str
    pos: int

    def is_punct(self, value: str) -> bool:
        return self.kind is TokenKind.PUNCT and self.value == value

    def is_ident(self, value: str | None = None) -> bool:
        if self.kind is not TokenKind.IDENT:
            return False
        return value is None or self.value == value
