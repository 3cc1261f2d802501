#!/usr/bin/env python3

"""Source-level warnings about constructs that make the analysis approximate."""

from __future__ import annotations

import re

MACRO_WARNING = "Macros detected: analysis might be inaccurate if macros affect types."
CONDITIONAL_WARNING = (
    "Conditional compilation detected: all branches are analyzed as if active."
)
FLEXIBLE_ARRAY_WARNING = "Flexible array members detected: size excludes the trailing array."

_MACRO_RE = re.compile(r"^\s*#\s*define\b", re.MULTILINE)
_CONDITIONAL_RE = re.compile(r"^\s*#\s*(?:if|ifdef|ifndef|elif)\b", re.MULTILINE)
_FLEXIBLE_ARRAY_RE = re.compile(r"\[\s*\]")


def inspect_source(text: str) -> list[str]:
    """Warnings for macros, conditional compilation and flexible arrays.

    Args:
        text: Raw source text, before normalization

    Returns:
        Warning messages in a fixed order, empty if nothing was found
    """
    warnings = []
    if _MACRO_RE.search(text):
        warnings.append(MACRO_WARNING)
    if _CONDITIONAL_RE.search(text):
        warnings.append(CONDITIONAL_WARNING)
    if _FLEXIBLE_ARRAY_RE.search(text):
        warnings.append(FLEXIBLE_ARRAY_WARNING)
    return warnings
