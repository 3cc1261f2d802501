#!/usr/bin/env python3

"""Field reordering to minimize padding."""

from __future__ import annotations

from ....infrastructure.logging import get_logger
from ...models.layout import AggregateLayout, FieldDescriptor, OptimizationResult, OptimizationSkipReason
from ...models.types import AggregateKind
from .layout_engine import layout_struct

logger = get_logger(__name__)


def _skip_reason(
    fields: list[FieldDescriptor], kind: AggregateKind, effective_alignment: int
) -> OptimizationSkipReason | None:
    """Why reordering this field list would be unsafe or meaningless."""
    if effective_alignment == 1:
        return OptimizationSkipReason.PACKED
    if kind is AggregateKind.UNION:
        return OptimizationSkipReason.UNION
    if any(f.is_bit_field for f in fields):
        return OptimizationSkipReason.BIT_FIELDS
    if any(f.is_anonymous for f in fields):
        return OptimizationSkipReason.ANONYMOUS_MEMBERS
    if any(f.is_flexible_array for f in fields):
        return OptimizationSkipReason.FLEXIBLE_ARRAY
    return None


def _unchanged(layout: AggregateLayout, reason: OptimizationSkipReason) -> OptimizationResult:
    return OptimizationResult(
        optimized_fields=layout.fields,
        optimized_size=layout.total_size,
        skip_reason=reason,
        optimized_layout=layout,
    )


def optimize_layout(
    layout: AggregateLayout,
    kind: AggregateKind = AggregateKind.STRUCT,
    effective_alignment: int = 8,
    align_attr: int | None = None,
) -> OptimizationResult:
    """Propose a field order sorted by alignment then size, both descending.

    Args:
        layout: Original layout of the aggregate
        kind: Struct or union
        effective_alignment: 1 for packed aggregates, else the target alignment
        align_attr: Aggregate-level ``aligned(N)`` value, if any

    Returns:
        OptimizationResult; the original order with zero savings when
        reordering is refused or does not help
    """
    reason = _skip_reason(layout.fields, kind, effective_alignment)
    if reason is not None:
        logger.debug(f"Optimization skipped: {reason.value}")
        return _unchanged(layout, reason)

    reordered = sorted(layout.fields, key=lambda f: (-f.alignment, -f.effective_size))
    optimized = layout_struct(reordered, effective_alignment, align_attr)
    memory_saved = max(0, layout.total_size - optimized.total_size)

    if memory_saved == 0:
        return _unchanged(layout, OptimizationSkipReason.NO_IMPROVEMENT)

    ratio = memory_saved / layout.total_size * 100 if layout.total_size else 0.0
    logger.debug(f"Reordering saves {memory_saved} bytes ({ratio:.1f}%)")
    return OptimizationResult(
        optimized_fields=optimized.fields,
        optimized_size=optimized.total_size,
        memory_saved=memory_saved,
        optimization_ratio=ratio,
        optimized_layout=optimized,
    )
