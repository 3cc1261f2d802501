#!/usr/bin/env python3

"""Layout computation and field reordering."""

from .layout_engine import lay_out, layout_struct, layout_union, padding_for
from .optimizer import optimize_layout

__all__ = [
    "lay_out",
    "layout_struct",
    "layout_union",
    "optimize_layout",
    "padding_for",
]
