#!/usr/bin/env python3

"""Struct and union layout computation.

Implements the flat C ABI model used throughout the analyzer:

- fields are placed in declaration order at the next multiple of their
  alignment (1 inside packed aggregates unless the field carries an explicit
  ``aligned(N)``),
- consecutive bitfields share a storage unit while they have the same unit
  size and fit; a new unit starts at a multiple of its own size (of the
  field placement alignment when packed), a zero-width bitfield closes the
  open unit,
- flexible array members sit at the current offset and take no space, but
  their alignment still counts toward the aggregate alignment,
- the total size is padded to the aggregate alignment.

Input fields are never mutated; every layout works on copies.
"""

from __future__ import annotations

from dataclasses import dataclass

from ....infrastructure.logging import get_logger
from ...models.layout import AggregateLayout, FieldDescriptor
from ...models.types import AggregateKind

logger = get_logger(__name__)


def padding_for(offset: int, alignment: int) -> int:
    """Bytes needed to move ``offset`` to the next multiple of ``alignment``."""
    alignment = max(alignment, 1)
    return (alignment - offset % alignment) % alignment


def _placement_alignment(field: FieldDescriptor, packed: bool) -> int:
    if packed:
        return field.explicit_alignment or 1
    return max(field.alignment, 1)


def _unit_alignment(field: FieldDescriptor, packed: bool) -> int:
    if packed:
        return _placement_alignment(field, packed)
    return max(field.unit_size, 1)


@dataclass
class _StorageUnit:
    """An open bitfield storage unit."""

    start: int
    size: int
    bit_offset: int

    def has_room(self, unit_size: int, bits: int) -> bool:
        return self.size == unit_size and self.bit_offset + bits <= self.size * 8


def _lay_out_anonymous(field: FieldDescriptor, effective_alignment: int) -> None:
    """Lay out a nested anonymous aggregate in place on a copied field."""
    inner_alignment = 1 if field.inner_packed else effective_alignment
    kind = AggregateKind.UNION if field.is_union else AggregateKind.STRUCT
    inner = lay_out(field.inner_fields, kind, inner_alignment, field.explicit_alignment)
    field.inner_fields = inner.fields
    field.alignment = inner.alignment
    if field.is_flexible_array:
        field.size = 0
    else:
        field.size = inner.total_size * (field.array_size or 1)


def layout_struct(
    fields: list[FieldDescriptor], effective_alignment: int, align_attr: int | None = None
) -> AggregateLayout:
    """Sequential struct layout.

    Args:
        fields: Resolved field descriptors in declaration order
        effective_alignment: 1 for packed aggregates, else the target alignment
        align_attr: Aggregate-level ``aligned(N)`` value, if any

    Returns:
        AggregateLayout with offsets and padding filled in
    """
    packed = effective_alignment == 1
    placed: list[FieldDescriptor] = []
    offset = 0
    padding = 0
    storage = 0
    max_alignment = 1
    unit: _StorageUnit | None = None

    def flush() -> None:
        nonlocal offset, storage, unit
        if unit is not None:
            offset += unit.size
            storage += unit.size
            unit = None

    for original in fields:
        field = original.copy()

        if field.is_bit_field:
            if field.bits == 0:
                flush()
                continue
            alignment = _placement_alignment(field, packed)
            if unit is not None and unit.has_room(field.unit_size, field.bits):
                field.offset = unit.start
                field.bit_offset = unit.bit_offset
                field.padding = 0
                unit.bit_offset += field.bits
            else:
                flush()
                pad = padding_for(offset, _unit_alignment(field, packed))
                offset += pad
                padding += pad
                unit = _StorageUnit(start=offset, size=field.unit_size, bit_offset=field.bits)
                field.offset = offset
                field.bit_offset = 0
                field.padding = pad
            field.size = 0
            max_alignment = max(max_alignment, alignment)
            placed.append(field)
            continue

        flush()

        if field.is_anonymous:
            _lay_out_anonymous(field, effective_alignment)

        if field.is_flexible_array:
            field.offset = offset
            field.size = 0
            field.padding = 0
            max_alignment = max(max_alignment, _placement_alignment(field, packed))
            placed.append(field)
            continue

        alignment = _placement_alignment(field, packed)
        pad = padding_for(offset, alignment)
        offset += pad
        padding += pad
        field.offset = offset
        field.padding = pad
        offset += field.effective_size
        max_alignment = max(max_alignment, alignment)
        placed.append(field)

    flush()

    final_alignment = max_alignment
    if align_attr:
        final_alignment = max(final_alignment, align_attr)
    trailing = padding_for(offset, final_alignment)
    total_size = offset + trailing
    padding += trailing

    return AggregateLayout(
        fields=placed,
        total_size=total_size,
        padding_bytes=padding,
        alignment=final_alignment,
        storage_bytes=storage,
    )


def layout_union(
    fields: list[FieldDescriptor], effective_alignment: int, align_attr: int | None = None
) -> AggregateLayout:
    """Union layout: every member at offset 0, size of the largest member.

    Bitfield members occupy their storage unit.
    """
    packed = effective_alignment == 1
    placed: list[FieldDescriptor] = []
    max_size = 0
    max_alignment = 1
    storage = 0

    for original in fields:
        field = original.copy()
        if field.is_bit_field:
            if field.bits == 0:
                continue
            member_size = field.unit_size
            storage = max(storage, field.unit_size)
            field.size = 0
            field.bit_offset = 0
        else:
            if field.is_anonymous:
                _lay_out_anonymous(field, effective_alignment)
            if field.is_flexible_array:
                field.size = 0
            member_size = field.effective_size

        field.offset = 0
        field.padding = 0
        max_size = max(max_size, member_size)
        max_alignment = max(max_alignment, _placement_alignment(field, packed))
        placed.append(field)

    final_alignment = max_alignment
    if align_attr:
        final_alignment = max(final_alignment, align_attr)
    total_size = max_size + padding_for(max_size, final_alignment)

    return AggregateLayout(
        fields=placed,
        total_size=total_size,
        padding_bytes=total_size - max_size,
        alignment=final_alignment,
        storage_bytes=storage,
    )


def lay_out(
    fields: list[FieldDescriptor],
    kind: AggregateKind,
    effective_alignment: int,
    align_attr: int | None = None,
) -> AggregateLayout:
    """Dispatch to the struct or union layout."""
    if kind is AggregateKind.UNION:
        layout = layout_union(fields, effective_alignment, align_attr)
    else:
        layout = layout_struct(fields, effective_alignment, align_attr)
    logger.debug(
        f"Laid out {kind.value} with {len(fields)} fields: size={layout.total_size}, "
        f"padding={layout.padding_bytes}, align={layout.alignment}"
    )
    return layout
