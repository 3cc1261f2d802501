#!/usr/bin/env python3

"""Output record for one analyzed top-level aggregate."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..types.type_entry import AggregateKind
from .aggregate_layout import OptimizationResult
from .field_descriptor import FieldDescriptor


@dataclass
class AggregateRecord:
    """Layout and optimization outcome for one top-level struct or union."""

    name: str
    kind: AggregateKind
    fields: list[FieldDescriptor]
    total_size: int
    padding_bytes: int
    alignment: int
    optimization: OptimizationResult
    source_match: str = ""
    line: int = 1
    is_packed: bool = False
    storage_bytes: int = 0
    """Bytes taken by bitfield storage units, not serialized"""

    @property
    def optimized_fields(self) -> list[FieldDescriptor]:
        return self.optimization.optimized_fields

    @property
    def optimized_size(self) -> int:
        return self.optimization.optimized_size

    @property
    def memory_saved(self) -> int:
        return self.optimization.memory_saved

    @property
    def optimization_ratio(self) -> float:
        return self.optimization.optimization_ratio

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase boundary shape consumed by renderers."""
        return {
            "name": self.name,
            "fields": [f.to_dict() for f in self.fields],
            "totalSize": self.total_size,
            "paddingBytes": self.padding_bytes,
            "optimizedFields": [f.to_dict() for f in self.optimized_fields],
            "optimizedSize": self.optimized_size,
            "memorySaved": self.memory_saved,
            "optimizationRatio": self.optimization_ratio,
            "sourceMatch": self.source_match,
        }
