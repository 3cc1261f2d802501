#!/usr/bin/env python3

"""Type table: an arena of named type entries for one analysis call.

Aliases point at other entries by name; aggregate entries carry their raw
definition until the resolution loop sizes them. Alias chains are followed
with a visited set so cyclic typedefs resolve to "unresolved" instead of
looping.
"""

from __future__ import annotations

from typing import NamedTuple

from ...errors import ResolutionError
from ...infrastructure.logging import get_logger
from ..models.layout import FieldDescriptor
from ..models.types import TypeTableEntry

logger = get_logger(__name__)

_TAG_PREFIXES = ("struct ", "union ", "enum ")


class AliasChainEnd(NamedTuple):
    """Terminal of an alias chain."""

    type_name: str
    entry: TypeTableEntry | None
    """Aggregate entry at the end of the chain, None for non-table types"""

    array_count: int
    """Product of array typedef counts met along the chain"""


class TypeTable:
    """Named type entries plus the ordered queue of aggregate definitions."""

    # Maximum alias chain length before giving up
    MAX_CHAIN_DEPTH = 32

    def __init__(self) -> None:
        self._entries: dict[str, TypeTableEntry] = {}
        self._aggregates: list[TypeTableEntry] = []
        self.constants: dict[str, int] = {}
        """Enumerator values usable in array dimensions and bit widths"""

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, name: str) -> TypeTableEntry | None:
        return self._entries.get(name)

    def register_aggregate(self, entry: TypeTableEntry) -> TypeTableEntry:
        """Register an aggregate definition under its primary name.

        A later definition with the same name replaces the earlier one for
        lookups; both stay queued for resolution.
        """
        existing = self._entries.get(entry.name)
        if existing is not None and existing.is_aggregate:
            logger.warning(f"Aggregate '{entry.name}' redefined; later definition wins lookups")
        self._entries[entry.name] = entry
        self._aggregates.append(entry)
        logger.debug(f"Registered {entry.kind.value if entry.kind else 'aggregate'} '{entry.name}'")
        return entry

    def register_alias(self, name: str, base_type: str, array_count: int = 1) -> bool:
        """Register ``name`` as an alias of ``base_type``.

        Self-aliases (``typedef struct Foo Foo;`` after ``struct Foo {...}``) and
        aliases that would shadow an aggregate definition are ignored.

        Returns:
            True if the alias was registered
        """
        if not name or name == base_type:
            return False
        existing = self._entries.get(name)
        if existing is not None and existing.is_aggregate:
            logger.debug(f"Alias '{name}' -> '{base_type}' skipped: name is an aggregate")
            return False
        self._entries[name] = TypeTableEntry(name=name, base_type=base_type, array_count=array_count)
        logger.debug(f"Registered alias '{name}' -> '{base_type}' (x{array_count})")
        return True

    def lookup(self, type_name: str) -> TypeTableEntry | None:
        """Find an entry by exact name, then by the name without its tag keyword."""
        entry = self._entries.get(type_name)
        if entry is not None:
            return entry
        for prefix in _TAG_PREFIXES:
            if type_name.startswith(prefix):
                return self._entries.get(type_name[len(prefix):].strip())
        return None

    def follow_alias_chain(self, type_name: str) -> AliasChainEnd | None:
        """Follow alias entries from ``type_name`` to a terminal type.

        Pointer types terminate the chain immediately since their size does not
        depend on the pointee.

        Returns:
            Chain terminal, or None if a cycle was detected or the chain is
            longer than MAX_CHAIN_DEPTH
        """
        current = type_name
        visited: set[str] = set()
        array_count = 1

        while len(visited) < self.MAX_CHAIN_DEPTH:
            if current.endswith(("*", "&")):
                return AliasChainEnd(current, None, array_count)

            entry = self.lookup(current)
            if entry is None:
                return AliasChainEnd(current, None, array_count)
            if entry.is_aggregate:
                return AliasChainEnd(entry.name, entry, array_count)

            if entry.name in visited:
                logger.warning(f"Circular typedef chain detected at '{entry.name}'")
                return None
            visited.add(entry.name)

            array_count *= entry.array_count
            current = entry.base_type or ""

        logger.warning(f"Typedef chain from '{type_name}' exceeds {self.MAX_CHAIN_DEPTH} steps")
        return None

    def mark_resolved(
        self, entry: TypeTableEntry, fields: list[FieldDescriptor], size: int, align: int
    ) -> None:
        """Store the final layout of an aggregate entry.

        Raises:
            ResolutionError: If the entry is not an aggregate or is already resolved
        """
        if not entry.is_aggregate:
            raise ResolutionError(f"'{entry.name}' is an alias and cannot be resolved")
        if entry.size is not None:
            raise ResolutionError(f"Aggregate '{entry.name}' is already resolved")
        entry.fields = fields
        entry.size = size
        entry.align = align
        logger.debug(f"Resolved '{entry.name}': size={size}, align={align}")

    def aggregates(self, top_level_only: bool = False) -> list[TypeTableEntry]:
        """Queued aggregate entries in source order."""
        if top_level_only:
            return [e for e in self._aggregates if e.is_top_level]
        return list(self._aggregates)

    def pending(self) -> list[TypeTableEntry]:
        """Aggregates that have not been sized yet, in source order."""
        return [e for e in self._aggregates if e.size is None]
