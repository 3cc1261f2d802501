#!/usr/bin/env python3

"""Size and alignment resolution for C type names.

Resolution order:
    1. Type table (typedef chains, aggregate references; cycles are unresolved)
    2. Custom type sizes from the configuration
    3. Built-in C sizes for the configured pointer width
    4. 4 bytes, with a warning diagnostic
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import NamedTuple

from ....infrastructure.logging import get_logger
from ...models.layout import DiagnosticLog
from ...models.types import BUILTIN_TYPE_KEYWORDS, TYPE_QUALIFIERS, canonical_builtin_name, default_type_sizes
from ...repositories import TypeTable

logger = get_logger(__name__)

UNKNOWN_TYPE_SIZE = 4


class ResolvedType(NamedTuple):
    """Size and alignment of a type; size None means not resolvable yet."""

    size: int | None
    alignment: int
    element_size: int | None = None
    """Size of the scalar/aggregate before typedef array multiplication"""


def normalize_type_name(type_name: str) -> str:
    """Drop qualifiers and collapse whitespace, keeping ``*``/``&`` suffixes."""
    spaced = type_name.replace("*", " * ").replace("&", " & ")
    words = [w for w in spaced.split() if w not in TYPE_QUALIFIERS]
    name = " ".join(words)
    return name.replace(" *", "*").replace(" &", "&")


class TypeResolver:
    """Resolves type names against the type table and size tables."""

    def __init__(
        self,
        table: TypeTable,
        target_alignment: int = 8,
        custom_type_sizes: Mapping[str, int] | None = None,
        diagnostics: DiagnosticLog | None = None,
    ):
        self.table = table
        self.target_alignment = target_alignment
        self.pointer_size = target_alignment
        self.custom_type_sizes = dict(custom_type_sizes or {})
        self.builtin_sizes = default_type_sizes(target_alignment)
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticLog()

    def pointer(self, alignment_cap: int | None = None) -> ResolvedType:
        return ResolvedType(self.pointer_size, self._cap(self.pointer_size, alignment_cap), self.pointer_size)

    def _cap(self, size: int, alignment_cap: int | None) -> int:
        alignment = max(1, min(size, self.target_alignment))
        if alignment_cap is not None:
            alignment = min(alignment, alignment_cap)
        return alignment

    def resolve(
        self,
        type_name: str,
        alignment_cap: int | None = None,
        aggregate: str | None = None,
        line: int | None = None,
    ) -> ResolvedType:
        """Resolve size and alignment of ``type_name``.

        Args:
            type_name: Type as written, qualifiers allowed
            alignment_cap: Active ``#pragma pack`` value, if any
            aggregate: Aggregate being parsed, for diagnostics
            line: Source line of that aggregate, for diagnostics

        Returns:
            ResolvedType; ``size`` is None when the type depends on an aggregate
            that is not sized yet or on a circular typedef chain
        """
        name = normalize_type_name(type_name)
        if name.endswith(("*", "&")):
            return self.pointer(alignment_cap)

        chain = self.table.follow_alias_chain(name)
        if chain is None:
            return ResolvedType(None, 1)

        terminal, entry, count = chain
        if terminal.endswith(("*", "&")):
            pointer = self.pointer(alignment_cap)
            return ResolvedType(pointer.size * count, pointer.alignment, pointer.size)

        if entry is not None:
            if entry.size is None or entry.align is None:
                return ResolvedType(None, 1)
            alignment = entry.align if alignment_cap is None else min(entry.align, alignment_cap)
            return ResolvedType(entry.size * count, max(alignment, 1), entry.size)

        size = self._scalar_size(terminal, aggregate, line)
        return ResolvedType(size * count, self._cap(size, alignment_cap), size)

    def _scalar_size(self, name: str, aggregate: str | None, line: int | None) -> int:
        if name in self.custom_type_sizes:
            return self.custom_type_sizes[name]

        words = name.split()
        canonical = name
        if words and all(w in BUILTIN_TYPE_KEYWORDS for w in words):
            canonical = canonical_builtin_name(words)
            if canonical in self.custom_type_sizes:
                return self.custom_type_sizes[canonical]

        if canonical in self.builtin_sizes:
            return self.builtin_sizes[canonical]

        if "::" in name:
            unscoped = name.rsplit("::", 1)[1]
            if unscoped in self.custom_type_sizes:
                return self.custom_type_sizes[unscoped]
            if unscoped in self.builtin_sizes:
                return self.builtin_sizes[unscoped]

        if name.startswith("enum "):
            return self.builtin_sizes["int"]

        message = f"Unknown type '{name}', assuming {UNKNOWN_TYPE_SIZE} bytes"
        if self.diagnostics.warning(message, aggregate=aggregate, line=line):
            logger.warning(message + (f" in '{aggregate}'" if aggregate else ""))
        return UNKNOWN_TYPE_SIZE
