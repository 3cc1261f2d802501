#!/usr/bin/env python3

"""Source-level models: tokens, pragma records and syntax nodes."""

from .pragma_pack import PragmaPackRecord
from .syntax_nodes import AggregateDefinition, AttributeSet, Declarator, MemberDecl
from .token import Token, TokenKind

__all__ = [
    "AggregateDefinition",
    "AttributeSet",
    "Declarator",
    "MemberDecl",
    "PragmaPackRecord",
    "Token",
    "TokenKind",
]
