#!/usr/bin/env python3

"""Syntax tree nodes produced by the declaration parser.

The grammar is deliberately partial: only what is needed to size aggregates
is modelled (aggregate definitions, declarators and member declarations).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from math import prod

from .token import Token


@dataclass
class AttributeSet:
    """Layout-relevant attributes (``packed``, ``aligned(N)``, ``alignas(N)``)."""

    packed: bool = False
    aligned: int | None = None

    def merge(self, other: AttributeSet) -> AttributeSet:
        aligned = self.aligned
        if other.aligned is not None:
            aligned = other.aligned if aligned is None else max(aligned, other.aligned)
        return AttributeSet(packed=self.packed or other.packed, aligned=aligned)


@dataclass
class Declarator:
    """One declared name with its pointer, array and bitfield decorations."""

    name: str
    pointer_depth: int = 0
    is_reference: bool = False
    array_dims: tuple[int | None, ...] = ()
    """Array dimensions; None marks an empty ``[]``"""

    unknown_dims: tuple[str, ...] = ()
    """Dimension expressions that could not be evaluated (counted as 1)"""

    bits: int | None = None
    is_function_pointer: bool = False
    attributes: AttributeSet = field(default_factory=AttributeSet)

    @property
    def is_bit_field(self) -> bool:
        return self.bits is not None

    @property
    def is_pointer(self) -> bool:
        return self.pointer_depth > 0 or self.is_reference

    @property
    def is_flexible_array(self) -> bool:
        return bool(self.array_dims) and self.array_dims[0] in (None, 0)

    @property
    def array_size(self) -> int:
        """Product of all array dimensions, 0 for scalars and flexible arrays."""
        if not self.array_dims or self.is_flexible_array:
            return 0
        return prod(dim or 0 for dim in self.array_dims)


@dataclass
class AggregateDefinition:
    """A ``struct``/``union`` definition with its body and trailing declarators."""

    kind: str
    tag: str | None
    body: str
    body_tokens: list[Token]
    attributes: AttributeSet
    declarators: list[Declarator]
    is_typedef: bool
    start: int
    end: int
    source_match: str
    line: int = 1


@dataclass
class MemberDecl:
    """One member statement of an aggregate body."""

    type_name: str
    declarators: list[Declarator]
    nested: AggregateDefinition | None = None
    attributes: AttributeSet = field(default_factory=AttributeSet)
    text: str = ""
