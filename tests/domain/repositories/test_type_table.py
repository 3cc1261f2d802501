"""Tests for the type table arena and alias chain resolution."""

import pytest

from cstruct_layout.domain.models.types import AggregateKind, TypeTableEntry
from cstruct_layout.domain.repositories import TypeTable
from cstruct_layout.errors import ResolutionError


def aggregate(name: str, kind: AggregateKind = AggregateKind.STRUCT) -> TypeTableEntry:
    return TypeTableEntry(name=name, kind=kind, body="int x;")


@pytest.fixture
def table() -> TypeTable:
    return TypeTable()


@pytest.mark.unit
class TestRegistration:
    """Test aggregate and alias registration rules."""

    def test_register_aggregate_queues_in_order(self, table):
        table.register_aggregate(aggregate("A"))
        table.register_aggregate(aggregate("B"))
        assert [e.name for e in table.aggregates()] == ["A", "B"]
        assert [e.name for e in table.pending()] == ["A", "B"]

    def test_redefinition_keeps_both_queued(self, table):
        first = table.register_aggregate(aggregate("A"))
        second = table.register_aggregate(aggregate("A"))
        assert table.get("A") is second
        assert table.aggregates() == [first, second]

    def test_register_alias(self, table):
        assert table.register_alias("u32", "unsigned int")
        entry = table.get("u32")
        assert entry.is_alias
        assert entry.is_resolved

    def test_self_alias_rejected(self, table):
        assert not table.register_alias("Foo", "Foo")
        assert "Foo" not in table

    def test_alias_cannot_shadow_aggregate(self, table):
        table.register_aggregate(aggregate("Foo"))
        assert not table.register_alias("Foo", "struct Foo")
        assert table.get("Foo").is_aggregate

    def test_lookup_strips_tag_keyword(self, table):
        table.register_aggregate(aggregate("Node"))
        assert table.lookup("struct Node") is table.get("Node")
        assert table.lookup("union Missing") is None


@pytest.mark.unit
class TestAliasChains:
    """Test chain following, array counts and cycles."""

    def test_chain_to_scalar(self, table):
        table.register_alias("u32", "unsigned int")
        table.register_alias("id_t", "u32")
        end = table.follow_alias_chain("id_t")
        assert end.type_name == "unsigned int"
        assert end.entry is None
        assert end.array_count == 1

    def test_chain_to_aggregate(self, table):
        entry = table.register_aggregate(aggregate("Node"))
        table.register_alias("NodeT", "Node")
        end = table.follow_alias_chain("NodeT")
        assert end.entry is entry

    def test_array_counts_multiply(self, table):
        table.register_alias("Vec3", "float", 3)
        table.register_alias("Mat3", "Vec3", 3)
        assert table.follow_alias_chain("Mat3").array_count == 9

    def test_pointer_terminates_chain(self, table):
        table.register_alias("NodePtr", "Node*")
        assert table.follow_alias_chain("NodePtr").type_name == "Node*"

    def test_cycle_is_unresolved(self, table):
        table.register_alias("A", "B")
        table.register_alias("B", "A")
        assert table.follow_alias_chain("A") is None

    def test_unknown_name_is_its_own_terminal(self, table):
        end = table.follow_alias_chain("mystery_t")
        assert end.type_name == "mystery_t"
        assert end.entry is None


@pytest.mark.unit
class TestResolution:
    """Test monotone resolution of aggregate entries."""

    def test_mark_resolved(self, table):
        entry = table.register_aggregate(aggregate("A"))
        table.mark_resolved(entry, [], 8, 4)
        assert entry.is_resolved
        assert (entry.size, entry.align) == (8, 4)
        assert table.pending() == []

    def test_resolving_twice_raises(self, table):
        entry = table.register_aggregate(aggregate("A"))
        table.mark_resolved(entry, [], 8, 4)
        with pytest.raises(ResolutionError):
            table.mark_resolved(entry, [], 16, 8)
        assert entry.size == 8

    def test_resolving_alias_raises(self, table):
        table.register_alias("u32", "unsigned int")
        with pytest.raises(ResolutionError):
            table.mark_resolved(table.get("u32"), [], 4, 4)
