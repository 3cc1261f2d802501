#!/usr/bin/env python3

"""Aggregate body to field descriptor conversion.

Member statements are classified, in priority order, as nested anonymous or
inline aggregates, bitfields, function pointers and regular fields/arrays.
Sizes come from the TypeResolver; bitfield, flexible array and nested
aggregate sizes are left to the layout engine.
"""

from __future__ import annotations

from ....errors import FieldParseError
from ....infrastructure.logging import get_logger
from ...models.layout import DiagnosticLog, FieldDescriptor
from ...models.source import Declarator, MemberDecl, Token
from ...models.types import FUNCTION_POINTER_TYPE
from .declaration_parser import DeclarationParser, split_statements
from .tokenizer import tokenize
from .type_resolver import TypeResolver

logger = get_logger(__name__)

_BITFIELD_UNIT_SIZES = (1, 2, 4, 8)
DEFAULT_BITFIELD_UNIT = 4


class FieldParser:
    """Parses aggregate bodies into ordered FieldDescriptor lists."""

    def __init__(self, resolver: TypeResolver, diagnostics: DiagnosticLog | None = None):
        self.resolver = resolver
        self.diagnostics = diagnostics if diagnostics is not None else resolver.diagnostics
        self._anon_counter = 0
        self._aggregate: str | None = None
        self._line: int | None = None
        self._alignment_cap: int | None = None

    def parse_body(
        self,
        body: str,
        alignment_cap: int | None = None,
        aggregate: str | None = None,
        line: int | None = None,
    ) -> list[FieldDescriptor]:
        """Parse the text between an aggregate's braces.

        Args:
            body: Aggregate body text
            alignment_cap: Active ``#pragma pack`` value other than 1, if any
            aggregate: Name of the aggregate, for diagnostics
            line: Source line of the aggregate, for diagnostics

        Returns:
            Field descriptors in declaration order
        """
        return self.parse_tokens(tokenize(body), alignment_cap, aggregate, line)

    def parse_tokens(
        self,
        tokens: list[Token],
        alignment_cap: int | None = None,
        aggregate: str | None = None,
        line: int | None = None,
    ) -> list[FieldDescriptor]:
        self._anon_counter = 0
        self._aggregate = aggregate
        self._line = line
        self._alignment_cap = alignment_cap
        fields = self._parse_members(tokens)
        logger.debug(f"Parsed {len(fields)} fields for '{aggregate}'")
        return fields

    def _warn(self, message: str) -> None:
        if self.diagnostics.warning(message, aggregate=self._aggregate, line=self._line):
            logger.warning(f"{message} (in '{self._aggregate}')")

    def _parse_members(self, tokens: list[Token]) -> list[FieldDescriptor]:
        fields: list[FieldDescriptor] = []
        constants = self.resolver.table.constants
        for statement in split_statements(tokens):
            try:
                member = DeclarationParser(statement, constants).parse_member()
            except FieldParseError as e:
                self._warn(f"Skipped member '{e.statement or ''}': {e}")
                continue
            if member is None:
                continue
            fields.extend(self._member_fields(member))
        return fields

    def _member_fields(self, member: MemberDecl) -> list[FieldDescriptor]:
        if member.nested is not None:
            return self._nested_fields(member)
        return [self._declarator_field(member, d) for d in member.declarators]

    # Nested aggregates

    def _next_anon_name(self, kind: str) -> str:
        self._anon_counter += 1
        return f"__anon_{kind}_member_{self._anon_counter}"

    def _nested_fields(self, member: MemberDecl) -> list[FieldDescriptor]:
        nested = member.nested
        inner_fields = self._parse_members(nested.body_tokens)
        declarators = member.declarators or [Declarator(name="")]
        fields: list[FieldDescriptor] = []

        for declarator in declarators:
            if declarator.is_pointer or declarator.is_function_pointer:
                fields.append(self._declarator_field(member, declarator))
                continue
            self._warn_unknown_dims(declarator)
            attrs = nested.attributes.merge(declarator.attributes)
            fields.append(
                FieldDescriptor(
                    name=declarator.name or self._next_anon_name(nested.kind),
                    type_name=member.type_name,
                    size=None,
                    array_size=declarator.array_size,
                    array_dims=tuple(d or 0 for d in declarator.array_dims),
                    is_flexible_array=declarator.is_flexible_array,
                    is_anonymous=True,
                    is_union=nested.kind == "union",
                    inner_fields=[f.copy() for f in inner_fields],
                    explicit_alignment=attrs.aligned,
                    inner_packed=attrs.packed,
                )
            )
        return fields

    # Plain declarators

    def _warn_unknown_dims(self, declarator: Declarator) -> None:
        for expr in declarator.unknown_dims:
            self._warn(f"Cannot evaluate '{expr}' for '{declarator.name or '<unnamed>'}', counting as 1")

    def _declarator_field(self, member: MemberDecl, declarator: Declarator) -> FieldDescriptor:
        self._warn_unknown_dims(declarator)
        attrs = member.attributes.merge(declarator.attributes)
        dims = tuple(d or 0 for d in declarator.array_dims)
        count = declarator.array_size or 1
        cap = self._alignment_cap

        if declarator.is_bit_field:
            resolved = self.resolver.resolve(member.type_name, cap, self._aggregate, self._line)
            unit = resolved.size if resolved.size in _BITFIELD_UNIT_SIZES else DEFAULT_BITFIELD_UNIT
            field = FieldDescriptor(
                name=declarator.name,
                type_name=member.type_name,
                size=None,
                alignment=resolved.alignment if resolved.size is not None else min(unit, self.resolver.target_alignment),
                is_bit_field=True,
                bits=declarator.bits or 0,
                unit_size=unit,
            )
        elif declarator.is_function_pointer:
            pointer = self.resolver.pointer(cap)
            field = FieldDescriptor(
                name=declarator.name,
                type_name=FUNCTION_POINTER_TYPE,
                size=0 if declarator.is_flexible_array else pointer.size * count,
                alignment=pointer.alignment,
                array_size=declarator.array_size,
                array_dims=dims,
                is_function_pointer=True,
                is_flexible_array=declarator.is_flexible_array,
            )
        else:
            if declarator.is_pointer:
                suffix = "&" if declarator.is_reference and not declarator.pointer_depth else "*" * declarator.pointer_depth
                type_name = member.type_name + suffix
                resolved = self.resolver.pointer(cap)
            else:
                type_name = member.type_name
                resolved = self.resolver.resolve(type_name, cap, self._aggregate, self._line)

            if declarator.is_flexible_array:
                size: int | None = 0
            elif resolved.size is None:
                size = None
            else:
                size = resolved.size * count

            field = FieldDescriptor(
                name=declarator.name,
                type_name=type_name,
                size=size,
                alignment=resolved.alignment,
                array_size=declarator.array_size,
                array_dims=dims,
                is_flexible_array=declarator.is_flexible_array,
            )

        if attrs.packed:
            field.alignment = 1
        if attrs.aligned is not None:
            field.explicit_alignment = attrs.aligned
            field.alignment = max(field.alignment, attrs.aligned)
        return field

    def force_unresolved(self, fields: list[FieldDescriptor], aggregate: str | None = None, line: int | None = None) -> int:
        """Size every still-unresolved field as 0, warning for each.

        Returns:
            Number of fields that were forced
        """
        self._aggregate = aggregate
        self._line = line
        forced = 0
        for field in fields:
            if field.is_anonymous:
                forced += self.force_unresolved(field.inner_fields, aggregate, line)
                continue
            if field.is_bit_field or field.is_flexible_array or field.size is not None:
                continue
            self._warn(f"Could not resolve type '{field.type_name}' of field '{field.name}'; sized as 0")
            field.size = 0
            field.alignment = max(field.alignment, 1)
            forced += 1
        return forced


def is_fully_resolved(fields: list[FieldDescriptor]) -> bool:
    """True when every field has a size (bitfields and flexible arrays exempt)."""
    return all(field.is_resolved for field in fields)
