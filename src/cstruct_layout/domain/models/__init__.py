#!/usr/bin/env python3

"""Domain models for C aggregate layout analysis."""

from .layout import (
    AggregateLayout,
    AggregateRecord,
    Diagnostic,
    DiagnosticLog,
    FieldDescriptor,
    OptimizationResult,
    OptimizationSkipReason,
    ParseOutcome,
    Severity,
)
from .source import (
    AggregateDefinition,
    AttributeSet,
    Declarator,
    MemberDecl,
    PragmaPackRecord,
    Token,
    TokenKind,
)
from .types import AggregateKind, TypeTableEntry

__all__ = [
    "AggregateDefinition",
    "AggregateKind",
    "AggregateLayout",
    "AggregateRecord",
    "AttributeSet",
    "Declarator",
    "Diagnostic",
    "DiagnosticLog",
    "FieldDescriptor",
    "MemberDecl",
    "OptimizationResult",
    "OptimizationSkipReason",
    "ParseOutcome",
    "PragmaPackRecord",
    "Severity",
    "Token",
    "TokenKind",
    "TypeTableEntry",
]
