#!/usr/bin/env python3

"""Source parsing services: normalization, tokenizing, catalog and fields."""

from .catalog_builder import TypeCatalogBuilder, active_pack_value
from .constant_expression import evaluate_constant
from .declaration_parser import DeclarationParser, split_statements
from .field_parser import FieldParser, is_fully_resolved
from .source_inspector import inspect_source
from .text_normalizer import NormalizedSource, normalize, strip_comments
from .tokenizer import tokenize
from .type_resolver import ResolvedType, TypeResolver

__all__ = [
    "DeclarationParser",
    "FieldParser",
    "NormalizedSource",
    "ResolvedType",
    "TypeCatalogBuilder",
    "TypeResolver",
    "active_pack_value",
    "evaluate_constant",
    "inspect_source",
    "is_fully_resolved",
    "normalize",
    "split_statements",
    "strip_comments",
    "tokenize",
]
