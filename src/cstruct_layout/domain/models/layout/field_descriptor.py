#!/usr/bin/env python3

"""Field descriptor model for aggregate layout."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any


@dataclass
class FieldDescriptor:
    """A single aggregate member as seen by the layout engine."""

    name: str
    type_name: str
    size: int | None = None
    """Size in bytes, None while the type is unresolved"""

    alignment: int = 1
    offset: int = 0
    padding: int = 0
    """Bytes inserted before this field"""

    array_size: int = 0
    is_bit_field: bool = False
    bits: int = 0
    bit_offset: int = 0
    is_function_pointer: bool = False
    is_flexible_array: bool = False
    is_anonymous: bool = False
    is_union: bool = False
    inner_fields: list[FieldDescriptor] = field(default_factory=list)

    # Internal layout inputs, never serialized
    array_dims: tuple[int, ...] = ()
    explicit_alignment: int | None = None
    unit_size: int = 4
    """Bitfield storage-unit size in bytes"""

    inner_packed: bool = False
    """Nested anonymous aggregate carries its own ``packed`` attribute"""

    @property
    def is_resolved(self) -> bool:
        """Bitfields and flexible arrays get their size from the layout engine."""
        if self.is_bit_field or self.is_flexible_array:
            return True
        if self.is_anonymous:
            return all(inner.is_resolved for inner in self.inner_fields)
        return self.size is not None

    @property
    def effective_size(self) -> int:
        return self.size or 0

    def copy(self) -> FieldDescriptor:
        """Deep copy, including nested anonymous members."""
        return replace(self, inner_fields=[inner.copy() for inner in self.inner_fields])

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase record shape; every key always present."""
        return {
            "name": self.name,
            "type": self.type_name,
            "size": self.effective_size,
            "offset": self.offset,
            "alignment": self.alignment,
            "padding": self.padding,
            "arraySize": self.array_size,
            "isBitField": self.is_bit_field,
            "bits": self.bits,
            "bitOffset": self.bit_offset,
            "isFunctionPointer": self.is_function_pointer,
            "isFlexibleArray": self.is_flexible_array,
            "isAnonymous": self.is_anonymous,
            "isUnion": self.is_union,
            "innerFields": [inner.to_dict() for inner in self.inner_fields],
        }
