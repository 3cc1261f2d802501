#!/usr/bin/env python3

"""Declaration rendering."""

from .declaration_generator import format_field, generate_layout_comment, generate_optimized_declaration

__all__ = [
    "format_field",
    "generate_layout_comment",
    "generate_optimized_declaration",
]
