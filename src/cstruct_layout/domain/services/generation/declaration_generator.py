#!/usr/bin/env python3

"""C declaration rendering for analyzed aggregates.

Produces the reordered declaration suggested by the optimizer, annotated with
per-field offsets so it can be pasted back into source.
"""

from __future__ import annotations

from ...models.layout import AggregateRecord, FieldDescriptor
from ...models.types import FUNCTION_POINTER_TYPE

INDENT = "    "


def _dimensions(field: FieldDescriptor) -> str:
    if field.is_flexible_array:
        return "[]" + "".join(f"[{d}]" for d in field.array_dims[1:])
    return "".join(f"[{d}]" for d in field.array_dims)


def _is_synthetic_name(name: str) -> bool:
    return name.startswith("__anon_")


def format_field(field: FieldDescriptor, depth: int = 1, with_comments: bool = True) -> list[str]:
    """Render one field as declaration lines at the given indent depth."""
    indent = INDENT * depth

    if field.is_anonymous:
        kind = "union" if field.is_union else "struct"
        tag = field.type_name.split(" ", 1)[1] if " " in field.type_name else ""
        lines = [f"{indent}{kind}{' ' + tag if tag else ''} {{"]
        for inner in field.inner_fields:
            lines.extend(format_field(inner, depth + 1, with_comments))
        name = "" if _is_synthetic_name(field.name) else f" {field.name}{_dimensions(field)}"
        closing = f"{indent}}}{name};"
        if with_comments:
            closing += f" // offset {field.offset}, size {field.effective_size}"
        lines.append(closing)
        return lines

    if field.type_name == FUNCTION_POINTER_TYPE:
        declaration = f"void (*{field.name}{_dimensions(field)})()"
    elif field.is_bit_field:
        declaration = f"{field.type_name} {field.name} : {field.bits}" if field.name else f"{field.type_name} : {field.bits}"
    else:
        declaration = f"{field.type_name} {field.name}{_dimensions(field)}"

    line = f"{indent}{declaration};"
    if with_comments:
        if field.is_bit_field:
            line += f" // offset {field.offset}, bit {field.bit_offset}, {field.bits} bits"
        else:
            line += f" // offset {field.offset}, size {field.effective_size}"
    return [line]


def generate_layout_comment(record: AggregateRecord) -> list[str]:
    """Metadata comment lines describing size, padding and savings."""
    ratio = record.padding_bytes / record.total_size * 100 if record.total_size else 0.0
    lines = [
        f"// {record.name}",
        f"// - Size: {record.total_size} bytes",
        f"// - Padding: {record.padding_bytes} bytes ({ratio:.1f}%)",
    ]
    if record.memory_saved > 0:
        lines.append(
            f"// - Optimized size: {record.optimized_size} bytes "
            f"(saves {record.memory_saved} bytes, {record.optimization_ratio:.1f}%)"
        )
    else:
        reason = record.optimization.skip_reason
        lines.append(f"// - No reordering savings{f' ({reason.value})' if reason else ''}")
    return lines


def generate_optimized_declaration(record: AggregateRecord, include_comment: bool = True) -> str:
    """Render the aggregate in its optimized field order.

    When the optimizer found no savings the original order is rendered with a
    note instead.

    Args:
        record: Analyzed aggregate
        include_comment: Prepend the layout metadata comment

    Returns:
        C declaration text
    """
    lines: list[str] = []
    if include_comment:
        lines.extend(generate_layout_comment(record))

    if record.memory_saved > 0:
        fields = record.optimized_fields
    else:
        fields = record.fields
        lines.append("// Original field order kept")

    lines.append(f"{record.kind.value} {record.name} {{")
    for field in fields:
        lines.extend(format_field(field))
    lines.append("};")
    return "\n".join(lines)
