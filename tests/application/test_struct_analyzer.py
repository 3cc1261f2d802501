"""End-to-end tests for the struct analyzer."""

import pytest

from cstruct_layout import ConfigurationError, analyze_source
from cstruct_layout.application import StructAnalyzer, struct_analyzer
from cstruct_layout.domain.models.layout import OptimizationSkipReason
from cstruct_layout.domain.models.types import AggregateKind, TypeTableEntry
from cstruct_layout.infrastructure.config import AnalysisConfig


@pytest.mark.integration
class TestReferenceScenarios:
    """Canonical layouts on the default 8-byte target."""

    def test_padding_between_char_and_int(self, record_of):
        record = record_of("struct S { char a; int b; char c; };", "S")
        assert record.total_size == 12
        assert record.padding_bytes == 6
        assert record.optimized_size == 8
        assert record.memory_saved == 4
        assert [f.name for f in record.optimized_fields] == ["b", "a", "c"]

    def test_bit_fields_share_a_unit(self, record_of):
        record = record_of("struct B { int a:3; int b:5; int c:24; };", "B")
        assert record.total_size == 4
        assert record.padding_bytes == 0
        assert [f.bit_offset for f in record.fields] == [0, 3, 8]

    def test_pragma_pack_push_one(self, record_of):
        source = "#pragma pack(push,1)\nstruct S { char a; int b; char c; };\n#pragma pack(pop)\n"
        record = record_of(source, "S")
        assert record.total_size == 6
        assert record.padding_bytes == 0
        assert record.memory_saved == 0
        assert record.optimization.skip_reason is OptimizationSkipReason.PACKED

    def test_pragma_pack_on_one_line(self, record_of):
        source = "#pragma pack(push,1) struct S { char a; int b; char c; }; #pragma pack(pop)"
        record = record_of(source, "S")
        assert [f.offset for f in record.fields] == [0, 1, 5]
        assert record.total_size == 6
        assert record.padding_bytes == 0
        assert record.memory_saved == 0

    def test_flexible_array_member(self, record_of):
        record = record_of("struct P { size_t len; char data[]; };", "P")
        data = record.fields[1]
        assert data.is_flexible_array
        assert data.size == 0
        assert data.offset == 8
        assert record.total_size == 8

    def test_flexible_array_alignment_pads_tail(self, record_of):
        record = record_of("struct S { char c; int data[]; };", "S")
        assert record.fields[1].offset == 1
        assert record.alignment == 4
        assert record.total_size == 4
        assert record.padding_bytes == 3

    def test_union_with_nested_struct(self, record_of):
        record = record_of("union U { struct { char a; int b; } s; double d; };", "U")
        assert record.total_size == 8
        nested = record.fields[0]
        assert nested.is_anonymous
        assert nested.size == 8
        assert [f.offset for f in nested.inner_fields] == [0, 4]


@pytest.mark.integration
class TestTypeResolution:
    """Typedefs, enums, nested aggregates and multi-pass resolution."""

    def test_typedef_name_used_for_record(self, analyzer):
        records = analyzer.parse_structs("typedef struct { char a; int b; } Foo_t;")
        assert [r.name for r in records] == ["Foo_t"]
        assert records[0].source_match.startswith("typedef struct")
        assert records[0].source_match.endswith("Foo_t;")

    def test_self_referential_pointer(self, record_of):
        record = record_of("typedef struct node { int v; struct node *next; } Node;", "Node")
        assert record.total_size == 16
        assert record.fields[1].type_name == "struct node*"

    def test_aggregate_member(self, record_of):
        source = "struct Inner { char c; double d; };\nstruct Outer { char tag; struct Inner in; };\n"
        record = record_of(source, "Outer")
        assert record.fields[1].offset == 8
        assert record.fields[1].size == 16
        assert record.total_size == 24

    def test_forward_reference_resolves_in_later_pass(self, record_of):
        source = "struct Outer { struct Inner in; char c; };\nstruct Inner { double d; int i; };\n"
        record = record_of(source, "Outer")
        assert record.fields[0].size == 16
        assert record.total_size == 24

    def test_typedef_chain_and_array_typedef(self, record_of):
        source = "typedef unsigned char u8;\ntypedef u8 byte;\ntypedef float Vec3[3];\nstruct P { byte flag; Vec3 v; };\n"
        record = record_of(source, "P")
        assert record.fields[0].size == 1
        assert record.fields[1].size == 12
        assert record.fields[1].offset == 4
        assert record.total_size == 16

    def test_enum_members_and_constants(self, record_of):
        source = "enum { N = 4 };\nenum Color { RED, GREEN };\nstruct E { char c; enum Color col; int v[N]; };\n"
        record = record_of(source, "E")
        assert [f.size for f in record.fields] == [1, 4, 16]
        assert record.total_size == 24

    def test_nested_tagged_struct_is_not_a_record(self, analyzer):
        records = analyzer.parse_structs("struct Outer { struct Inner { int a; } in; int b; };")
        assert [r.name for r in records] == ["Outer"]
        assert records[0].total_size == 8

    def test_cxx_methods_ignored(self, record_of):
        source = "struct Counter { Counter() : value(0) {} void inc() { ++value; } int value; };"
        record = record_of(source, "Counter")
        assert [f.name for f in record.fields] == ["value"]
        assert record.total_size == 4

    def test_records_in_source_order(self, analyzer):
        records = analyzer.parse_structs("struct B { int x; };\nstruct A { int y; };\n")
        assert [r.name for r in records] == ["B", "A"]


@pytest.mark.integration
class TestBoundedResolution:
    """Forced passes for long chains and cycles."""

    SOURCE = (
        "struct A { struct B b; };\n"
        "struct B { struct C c; };\n"
        "struct C { struct D d; };\n"
        "struct D { int x; };\n"
    )

    def test_chain_longer_than_pass_limit_is_forced(self):
        result = analyze_source(self.SOURCE, AnalysisConfig(max_passes=3))
        sizes = {r.name: r.total_size for r in result.records}
        assert sizes == {"A": 0, "B": 4, "C": 4, "D": 4}
        assert any("sized as 0" in d.message for d in result.diagnostics.warnings)

    def test_more_passes_resolve_the_chain(self):
        result = analyze_source(self.SOURCE, AnalysisConfig(max_passes=4))
        assert all(r.total_size == 4 for r in result.records)
        assert not any("sized as 0" in d.message for d in result.diagnostics.warnings)

    def test_self_containing_struct_is_forced(self, analyze):
        result = analyze("struct Self { struct Self inner; int x; };")
        record = result.records[0]
        assert record.fields[0].size == 0
        assert record.total_size == 4
        assert any("inner" in d.message for d in result.diagnostics.warnings)

    def test_circular_typedefs(self, record_of):
        record = record_of("typedef T1 T2;\ntypedef T2 T1;\nstruct S { T1 v; int x; };\n", "S")
        assert record.fields[0].size == 0
        assert record.total_size == 4


@pytest.mark.integration
class TestTargetsAndConfiguration:
    """Pointer width, custom sizes and pack caps."""

    def test_long_and_pointer_follow_target(self, analyzer, analyzer_32):
        source = "struct L { char c; long l; void *p; };"
        assert analyzer.parse_structs(source)[0].total_size == 24
        assert analyzer_32.parse_structs(source)[0].total_size == 12

    def test_double_capped_on_four_byte_target(self, analyzer_32):
        record = analyzer_32.parse_structs("struct D { char c; double d; };")[0]
        assert record.fields[1].offset == 4
        assert record.total_size == 12

    def test_wide_bit_field_unit_on_four_byte_target(self, analyzer_32):
        record = analyzer_32.parse_structs("struct S { char a; long long b:3; };")[0]
        assert record.fields[1].offset == 8
        assert record.alignment == 4
        assert record.total_size == 16

    def test_custom_type_size(self):
        config = AnalysisConfig(custom_type_sizes={"Vec3": 12})
        record = StructAnalyzer(config).parse_structs("struct M { char c; Vec3 pos; };")[0]
        assert record.fields[1].size == 12
        assert record.total_size == 24

    def test_unknown_type_warns_and_defaults(self, analyze):
        result = analyze("struct U { Mystery m; char c; };")
        assert result.records[0].fields[0].size == 4
        assert any("Mystery" in d.message for d in result.diagnostics.warnings)

    def test_pragma_pack_two(self, record_of):
        source = "#pragma pack(push, 2)\nstruct Q { char c; int i; double d; };\n#pragma pack(pop)\n"
        record = record_of(source, "Q")
        assert [f.offset for f in record.fields] == [0, 2, 6]
        assert record.total_size == 14

    def test_effective_alignment(self, analyzer):
        assert analyzer.effective_alignment(TypeTableEntry(name="A", kind=AggregateKind.STRUCT)) == 8
        packed = TypeTableEntry(name="P", kind=AggregateKind.STRUCT, is_packed=True)
        assert analyzer.effective_alignment(packed) == 1
        capped = TypeTableEntry(name="C", kind=AggregateKind.STRUCT, pack_value=2)
        assert analyzer.effective_alignment(capped) == 2

    def test_invalid_configuration_raises(self):
        with pytest.raises(ConfigurationError):
            analyze_source("struct A { int x; };", AnalysisConfig(target_alignment=16))
        with pytest.raises(ValueError):
            analyze_source("struct A { int x; };", AnalysisConfig(max_passes=0))


@pytest.mark.integration
class TestErrorIsolation:
    """Malformed source and per-aggregate failures."""

    def test_unterminated_aggregate_keeps_earlier_records(self, analyze):
        result = analyze("struct Good { int x; };\nstruct Bad { int y;\n")
        assert [r.name for r in result.records] == ["Good"]
        assert len(result.diagnostics.errors) == 1

    def test_failing_aggregate_is_isolated(self, analyze, monkeypatch):
        original = struct_analyzer.lay_out

        def failing_lay_out(fields, kind, effective_alignment, align_attr=None):
            if any(f.name == "boom" for f in fields):
                raise ValueError("layout exploded")
            return original(fields, kind, effective_alignment, align_attr)

        monkeypatch.setattr(struct_analyzer, "lay_out", failing_lay_out)
        result = analyze("struct Bad { int boom; };\nstruct Good { int x; };\n")
        assert [r.name for r in result.records] == ["Good"]
        assert [o.name for o in result.failures] == ["Bad"]
        assert "layout exploded" in result.diagnostics.errors[0].message

    def test_source_warnings_reported(self, analyze):
        result = analyze("#define N 4\nstruct F { int n; char d[]; };\n")
        messages = [d.message for d in result.diagnostics.warnings]
        assert any("Macros" in m for m in messages)
        assert any("Flexible array" in m for m in messages)

    def test_empty_source(self, analyze):
        result = analyze("")
        assert result.records == []
        assert result.summary.structs_analyzed == 0


@pytest.mark.integration
class TestResultShape:
    """Serialized output and summary."""

    def test_to_dict(self, analyze):
        data = analyze("struct S { char a; int b; char c; };").to_dict()
        assert set(data) == {"structs", "diagnostics", "summary"}
        assert data["structs"][0]["totalSize"] == 12
        assert data["summary"] == {
            "structsAnalyzed": 1,
            "totalBytes": 12,
            "totalPadding": 6,
            "potentialSavings": 4,
            "optimizableCount": 1,
            "paddingRatio": 50.0,
        }

    def test_repeated_calls_are_identical(self, analyzer):
        source = "struct { int x; } a;\nunion { char c; short s; } b;\nstruct T { char c; union { int i; float f; }; };\n"
        first = analyzer.analyze(source).to_dict()
        second = analyzer.analyze(source).to_dict()
        assert first == second
        assert [s["name"] for s in first["structs"]] == ["__anon_struct_1", "__anon_union_2", "T"]


SOUNDNESS_SOURCES = [
    "struct A { char a; int b; char c; };",
    "struct B { double d; char c; short s; int i; char t[3]; };",
    "struct C { char c; void *p; long l; float f; };",
    "struct D { size_t len; char data[]; };",
    "struct D2 { char c; int data[]; };",
    "struct E { int a : 3; char c; int b : 30; int d : 4; };",
    "struct E2 { char a; long long w : 3; unsigned char f : 2; short s; };",
    "union F { char c[5]; int i; double d; };",
    "struct G { char c; struct { char x; double y; } inner; short s; };",
    "struct H { char c; int x __attribute__((aligned(16))); };",
    "#pragma pack(2)\nstruct I { char c; double d; };\n",
]


@pytest.mark.integration
class TestLayoutSoundness:
    """Layout invariants over a mix of aggregates."""

    @pytest.mark.parametrize("source", SOUNDNESS_SOURCES)
    def test_total_is_multiple_of_alignment(self, analyzer, source):
        for record in analyzer.parse_structs(source):
            assert record.total_size % record.alignment == 0

    @pytest.mark.parametrize("source", SOUNDNESS_SOURCES)
    def test_struct_fields_do_not_overlap(self, analyzer, source):
        for record in analyzer.parse_structs(source):
            if record.kind.value == "union":
                continue
            placed = [f for f in record.fields if not f.is_bit_field]
            for current, following in zip(placed, placed[1:]):
                assert current.offset + current.effective_size <= following.offset
            if placed:
                last = placed[-1]
                assert last.offset + last.effective_size <= record.total_size

    @pytest.mark.parametrize("source", SOUNDNESS_SOURCES)
    def test_fields_are_aligned(self, analyzer, source):
        for record in analyzer.parse_structs(source):
            for field in record.fields:
                if field.is_bit_field or field.is_flexible_array:
                    continue
                assert field.offset % field.alignment == 0

    @pytest.mark.parametrize("source", SOUNDNESS_SOURCES)
    def test_optimization_never_grows(self, analyzer, source):
        for record in analyzer.parse_structs(source):
            assert record.optimized_size <= record.total_size
            assert record.memory_saved == record.total_size - record.optimized_size

    @pytest.mark.parametrize("source", SOUNDNESS_SOURCES)
    @pytest.mark.parametrize("target", [4, 8])
    def test_padding_accounts_for_every_byte(self, source, target):
        analyzer = StructAnalyzer(AnalysisConfig(target_alignment=target))
        for record in analyzer.parse_structs(source):
            if record.kind.value == "union":
                continue
            field_bytes = sum(f.effective_size for f in record.fields if not f.is_bit_field)
            assert record.padding_bytes + field_bytes + record.storage_bytes == record.total_size
