#!/usr/bin/env python3

"""Layout and optimization result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .field_descriptor import FieldDescriptor


@dataclass
class AggregateLayout:
    """Result of laying out one field list."""

    fields: list[FieldDescriptor]
    total_size: int
    padding_bytes: int
    alignment: int
    storage_bytes: int = 0
    """Bitfield storage consumed, counted once per flushed unit"""

    @property
    def padding_ratio(self) -> float:
        if self.total_size == 0:
            return 0.0
        return self.padding_bytes / self.total_size * 100


class OptimizationSkipReason(Enum):
    """Why the optimizer kept the original field order."""

    PACKED = "packed"
    UNION = "union"
    BIT_FIELDS = "bit_fields"
    ANONYMOUS_MEMBERS = "anonymous_members"
    FLEXIBLE_ARRAY = "flexible_array"
    NO_IMPROVEMENT = "no_improvement"


@dataclass
class OptimizationResult:
    """Proposed field order and the bytes it saves."""

    optimized_fields: list[FieldDescriptor]
    optimized_size: int
    memory_saved: int = 0
    optimization_ratio: float = 0.0
    """Percentage of the original size saved"""

    skip_reason: OptimizationSkipReason | None = None
    optimized_layout: AggregateLayout | None = field(default=None, repr=False)

    @property
    def has_savings(self) -> bool:
        return self.memory_saved > 0
