#!/usr/bin/env python3

"""Type table models and C type constants."""

from .c_type_constants import (
    ACCESS_SPECIFIERS,
    AGGREGATE_KEYWORDS,
    ATTRIBUTE_KEYWORDS,
    BUILTIN_TYPE_KEYWORDS,
    FUNCTION_POINTER_TYPE,
    NON_STORAGE_SPECIFIERS,
    TYPE_QUALIFIERS,
    canonical_builtin_name,
    default_type_sizes,
)
from .type_entry import AggregateKind, TypeTableEntry

__all__ = [
    "ACCESS_SPECIFIERS",
    "AGGREGATE_KEYWORDS",
    "ATTRIBUTE_KEYWORDS",
    "AggregateKind",
    "BUILTIN_TYPE_KEYWORDS",
    "FUNCTION_POINTER_TYPE",
    "NON_STORAGE_SPECIFIERS",
    "TYPE_QUALIFIERS",
    "TypeTableEntry",
    "canonical_builtin_name",
    "default_type_sizes",
]
