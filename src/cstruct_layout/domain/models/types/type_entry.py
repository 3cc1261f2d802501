#!/usr/bin/env python3

"""Type table entry model."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..layout.field_descriptor import FieldDescriptor
    from ..source.syntax_nodes import AggregateDefinition


class AggregateKind(Enum):
    """Kind of an aggregate definition."""

    STRUCT = "struct"
    UNION = "union"

    @classmethod
    def from_keyword(cls, keyword: str) -> AggregateKind:
        return cls(keyword)


@dataclass
class TypeTableEntry:
    """One named entry of the type table.

    An entry is either an alias (``base_type`` set) or an aggregate definition
    (``kind`` set). Aggregate entries start unresolved (``size is None``) and are
    filled exactly once by the resolution loop.
    """

    name: str

    # Alias entries
    base_type: str | None = None
    array_count: int = 1
    """Element count for array typedefs (``typedef int Vec[3];``)"""

    # Aggregate entries
    kind: AggregateKind | None = None
    body: str = ""
    is_packed: bool = False
    align_attr: int | None = None
    pack_value: int | None = None
    """Active ``#pragma pack`` value other than 1, caps member alignment"""

    definition: AggregateDefinition | None = None
    alias_name: str | None = None
    is_top_level: bool = True
    source_match: str = ""
    line: int = 1

    # Filled once by the resolution loop
    fields: list[FieldDescriptor] = field(default_factory=list)
    size: int | None = None
    align: int | None = None

    @property
    def is_alias(self) -> bool:
        return self.base_type is not None

    @property
    def is_aggregate(self) -> bool:
        return self.kind is not None

    @property
    def is_resolved(self) -> bool:
        return self.is_alias or self.size is not None

    @property
    def display_name(self) -> str:
        """Name used in output records: typedef alias wins over the tag."""
        return self.alias_name or self.name
