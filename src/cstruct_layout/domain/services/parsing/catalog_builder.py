#!/usr/bin/env python3

"""Type catalog construction.

Scans the token stream of normalized source for aggregate definitions,
typedefs and enums and registers them in a fresh TypeTable:

    struct Tag { ... };             -> "Tag" + alias "struct Tag"
    typedef struct { ... } Name;    -> "Name"
    typedef struct Tag {...} Name;  -> "Tag" + aliases "Name", "struct Tag"
    typedef unsigned int u32;       -> alias "u32" -> "unsigned int"
    enum Color { ... };             -> alias "Color" -> "int"

Forward declarations and usages (``struct Foo;``, ``struct Foo *p;``) are
skipped. Scanning never moves backwards, so it always terminates.
"""

from __future__ import annotations

from ....errors import FieldParseError
from ....infrastructure.logging import get_logger
from ...models.layout import DiagnosticLog
from ...models.source import AggregateDefinition, AttributeSet, Declarator, PragmaPackRecord, Token, TokenKind
from ...models.types import AGGREGATE_KEYWORDS, TYPE_QUALIFIERS, AggregateKind, TypeTableEntry
from ...repositories import TypeTable
from .constant_expression import evaluate_constant
from .declaration_parser import DeclarationParser, find_matching, join_tokens
from .text_normalizer import NormalizedSource
from .tokenizer import tokenize

logger = get_logger(__name__)

_SUFFIX_STOP_WORDS = frozenset({"struct", "union", "enum", "typedef", "class"})


def active_pack_value(records: list[PragmaPackRecord], position: int) -> int | None:
    """Pack value in effect at ``position``.

    ``push`` saves the current value (and optionally sets a new one), ``pop``
    restores the saved value, ``pack(N)`` replaces it and ``pack()`` clears it.
    A push without a matching pop stays in effect until the end of the text.
    """
    stack: list[int | None] = []
    current: int | None = None
    for record in records:
        if record.position > position:
            break
        if record.is_pop:
            current = stack.pop() if stack else None
        elif record.is_push:
            stack.append(current)
            if record.value is not None:
                current = record.value
        else:
            current = record.value
    return current


class TypeCatalogBuilder:
    """Builds the type table for one analysis call."""

    def __init__(self, diagnostics: DiagnosticLog):
        self.diagnostics = diagnostics
        self.table = TypeTable()
        self.source: NormalizedSource | None = None
        self.tokens: list[Token] = []
        self._anon_counter = 0
        self._body_ends: list[int] = []

    def build(self, source: NormalizedSource) -> TypeTable:
        """Register every aggregate, typedef and enum found in ``source``.

        Args:
            source: Normalized source text with its pragma pack records

        Returns:
            Populated TypeTable with aggregates queued in source order
        """
        self.source = source
        self.tokens = tokenize(source.text)
        i = 0

        while i < len(self.tokens):
            while self._body_ends and i > self._body_ends[-1]:
                self._body_ends.pop()

            t = self.tokens[i]
            if t.kind is not TokenKind.IDENT:
                i += 1
            elif t.value == "typedef":
                i = self._scan_typedef(i)
            elif t.value == "enum":
                i = self._scan_enum(i, is_typedef=self._preceded_by_typedef(i))
            elif t.value in AGGREGATE_KEYWORDS:
                i = self._scan_aggregate(i)
            else:
                i += 1

        logger.debug(
            f"Catalog: {len(self.table.aggregates())} aggregates, "
            f"{len(self.table)} table entries, {len(self.table.constants)} constants"
        )
        return self.table

    # Helpers

    def _line(self, position: int) -> int:
        return self.source.line_of(position) if self.source else 1

    def _preceded_by_typedef(self, index: int) -> bool:
        k = index - 1
        while k >= 0 and self.tokens[k].kind is TokenKind.IDENT and self.tokens[k].value in TYPE_QUALIFIERS:
            k -= 1
        return k >= 0 and self.tokens[k].is_ident("typedef")

    def _find_statement_end(self, start: int, stop_on_keywords: bool = False) -> int | None:
        """Index of the ``;`` ending the statement that starts at ``start``.

        With ``stop_on_keywords`` the search gives up at a declaration keyword
        or brace at depth 0, which marks a missing terminator.
        """
        depth = 0
        for k in range(start, len(self.tokens)):
            t = self.tokens[k]
            if t.kind is TokenKind.PUNCT:
                if t.value in ("(", "["):
                    depth += 1
                elif t.value in (")", "]"):
                    depth -= 1
                elif t.value == ";" and depth <= 0:
                    return k
                elif t.value in ("{", "}") and depth <= 0 and stop_on_keywords:
                    return None
            elif stop_on_keywords and depth <= 0 and t.kind is TokenKind.IDENT and t.value in _SUFFIX_STOP_WORDS:
                return None
        return None

    def _next_brace_or_semicolon(self, start: int) -> Token | None:
        for k in range(start, len(self.tokens)):
            t = self.tokens[k]
            if t.is_punct("{") or t.is_punct(";"):
                return t
        return None

    def _register_declarator_alias(self, declarator: Declarator, target: str) -> None:
        if not declarator.name:
            return
        if declarator.is_function_pointer:
            self.table.register_alias(declarator.name, "void*")
        elif declarator.is_pointer:
            self.table.register_alias(declarator.name, target + "*" * max(declarator.pointer_depth, 1))
        else:
            count = declarator.array_size if declarator.array_dims and not declarator.is_flexible_array else 1
            self.table.register_alias(declarator.name, target, count)

    # Typedefs

    def _scan_typedef(self, index: int) -> int:
        """Handle ``typedef``; aggregate/enum definitions fall through to their scanners."""
        k = index + 1
        while k < len(self.tokens) and self.tokens[k].kind is TokenKind.IDENT and self.tokens[k].value in TYPE_QUALIFIERS:
            k += 1
        if k < len(self.tokens):
            head = self.tokens[k]
            marker = self._next_brace_or_semicolon(k)
            defines_body = marker is not None and marker.is_punct("{")
            if head.kind is TokenKind.IDENT and head.value in AGGREGATE_KEYWORDS | {"enum"} and defines_body:
                return k

        end = self._find_statement_end(index + 1)
        if end is None:
            return len(self.tokens)

        statement = self.tokens[index + 1 : end]
        parser = DeclarationParser(statement, self.table.constants)
        try:
            specifier = parser.parse_type_specifier()
            declarators = parser.parse_declarator_list() if specifier else None
        except FieldParseError as e:
            self.diagnostics.warning(f"Could not parse typedef '{join_tokens(statement)}': {e}",
                                     line=self._line(self.tokens[index].pos))
            return end + 1

        if specifier is None or declarators is None:
            logger.debug(f"Skipping typedef without data type: {join_tokens(statement)}")
            return end + 1

        base_type = specifier[0]
        for declarator in declarators:
            self._register_declarator_alias(declarator, base_type)
        return end + 1

    # Enums

    def _scan_enum(self, index: int, is_typedef: bool) -> int:
        parser = DeclarationParser(self.tokens, self.table.constants)
        parser.i = index + 1
        if parser.at_ident("class") or parser.at_ident("struct"):
            parser.i += 1
        parser.parse_attributes()
        tag = None
        if parser.at_ident() and not parser.at_attribute():
            tag = parser.cur().value
            parser.i += 1
        underlying = "int"
        if parser.at_punct(":"):
            parser.i += 1
            specifier = parser.parse_type_specifier()
            if specifier is not None:
                underlying = specifier[0]
        if not parser.at_punct("{"):
            return index + 1

        close = find_matching(self.tokens, parser.i)
        if close is None:
            self.diagnostics.error("Unterminated enum definition", line=self._line(self.tokens[index].pos))
            return len(self.tokens)

        self._collect_enumerators(self.tokens[parser.i + 1 : close])
        if tag:
            self.table.register_alias(tag, underlying)
            self.table.register_alias(f"enum {tag}", underlying)

        end = self._find_statement_end(close + 1, stop_on_keywords=True)
        if end is None:
            return close + 1
        if is_typedef:
            suffix = DeclarationParser(self.tokens[close + 1 : end], self.table.constants)
            try:
                suffix.parse_attributes()
                for declarator in suffix.parse_declarator_list() or []:
                    self._register_declarator_alias(declarator, underlying)
            except FieldParseError as e:
                self.diagnostics.warning(f"Could not parse enum typedef names: {e}",
                                         line=self._line(self.tokens[index].pos))
        return end + 1

    def _collect_enumerators(self, body: list[Token]) -> None:
        next_value: int | None = 0
        items: list[list[Token]] = [[]]
        depth = 0
        for t in body:
            if t.kind is TokenKind.PUNCT and t.value in ("(", "[", "{"):
                depth += 1
            elif t.kind is TokenKind.PUNCT and t.value in (")", "]", "}"):
                depth -= 1
            if t.is_punct(",") and depth == 0:
                items.append([])
            else:
                items[-1].append(t)

        for item in items:
            if not item or item[0].kind is not TokenKind.IDENT:
                continue
            name = item[0].value
            if len(item) > 2 and item[1].is_punct("="):
                next_value = evaluate_constant(item[2:], self.table.constants)
            if next_value is None:
                continue
            self.table.constants[name] = next_value
            next_value += 1

    # Aggregates

    def _scan_aggregate(self, index: int) -> int:
        keyword = self.tokens[index]
        is_typedef = self._preceded_by_typedef(index)

        parser = DeclarationParser(self.tokens, self.table.constants)
        parser.i = index + 1
        attrs = parser.parse_attributes()
        tag = None
        if parser.at_ident() and not parser.at_attribute():
            tag = parser.cur().value
            parser.i += 1
        attrs = attrs.merge(parser.parse_attributes())

        if not parser.at_punct("{"):
            marker = self._next_brace_or_semicolon(parser.i)
            if marker is not None and marker.is_punct("{"):
                # Something other than a tag and attributes before the body
                logger.debug(f"Unsupported {keyword.value} head at line {self._line(keyword.pos)}")
                return index + 1
            end = self._find_statement_end(parser.i)
            return len(self.tokens) if end is None else end + 1

        open_index = parser.i
        close_index = find_matching(self.tokens, open_index)
        if close_index is None:
            name = tag or f"<anonymous {keyword.value}>"
            self.diagnostics.error(
                f"Unterminated {keyword.value} definition '{name}'; scanning stopped",
                aggregate=tag,
                line=self._line(keyword.pos),
            )
            logger.warning(f"Unbalanced braces in {keyword.value} '{name}' at line {self._line(keyword.pos)}")
            return len(self.tokens)

        top_level = not self._body_ends
        self._body_ends.append(close_index)

        end_index = self._find_statement_end(close_index + 1, stop_on_keywords=True)
        if end_index is None:
            self.diagnostics.warning(
                f"Missing ';' after {keyword.value} '{tag or 'anonymous'}' definition; skipped",
                aggregate=tag,
                line=self._line(keyword.pos),
            )
            return open_index + 1

        declarators, suffix_attrs = self._parse_suffix(close_index + 1, end_index, keyword)
        if is_typedef:
            for declarator in declarators:
                suffix_attrs = suffix_attrs.merge(declarator.attributes)
        attrs = attrs.merge(suffix_attrs)

        typedef_name = None
        if is_typedef:
            typedef_name = next(
                (d.name for d in declarators if d.name and not d.is_pointer and not d.array_dims),
                None,
            )

        if not tag and not typedef_name and not top_level:
            # Anonymous nested aggregates live only inside their parent's fields
            return open_index + 1

        start_index = index
        if is_typedef:
            while not self.tokens[start_index].is_ident("typedef"):
                start_index -= 1
        start_token = self.tokens[start_index]
        definition = AggregateDefinition(
            kind=keyword.value,
            tag=tag,
            body=self.source.text[self.tokens[open_index].pos + 1 : self.tokens[close_index].pos],
            body_tokens=self.tokens[open_index + 1 : close_index],
            attributes=attrs,
            declarators=declarators,
            is_typedef=is_typedef,
            start=keyword.pos,
            end=self.tokens[end_index].pos + 1,
            source_match=self.source.text[start_token.pos : self.tokens[end_index].pos + 1],
            line=self._line(keyword.pos),
        )
        entry = self._register(definition, typedef_name, top_level)

        if is_typedef:
            for declarator in declarators:
                if declarator.name and declarator.name != typedef_name:
                    self._register_declarator_alias(declarator, entry.name)

        # Continue inside the body so nested tagged definitions are registered too
        return open_index + 1

    def _parse_suffix(self, start: int, end: int, keyword: Token) -> tuple[list[Declarator], AttributeSet]:
        suffix = DeclarationParser(self.tokens[start:end], self.table.constants)
        attrs = suffix.parse_attributes()
        try:
            declarators = suffix.parse_declarator_list() or []
        except FieldParseError as e:
            self.diagnostics.warning(
                f"Could not parse declarators after {keyword.value} definition: {e}",
                line=self._line(keyword.pos),
            )
            declarators = []
        return declarators, attrs

    def _register(
        self, definition: AggregateDefinition, typedef_name: str | None, top_level: bool
    ) -> TypeTableEntry:
        kind = AggregateKind.from_keyword(definition.kind)
        if definition.tag:
            primary = definition.tag
        elif typedef_name:
            primary = typedef_name
        else:
            self._anon_counter += 1
            primary = f"__anon_{kind.value}_{self._anon_counter}"

        pack_value = active_pack_value(self.source.pragma_records, definition.start)
        is_packed = definition.attributes.packed or pack_value == 1

        entry = TypeTableEntry(
            name=primary,
            kind=kind,
            body=definition.body,
            is_packed=is_packed,
            align_attr=definition.attributes.aligned,
            pack_value=pack_value if pack_value not in (None, 1) else None,
            definition=definition,
            alias_name=typedef_name if typedef_name != primary else None,
            is_top_level=top_level,
            source_match=definition.source_match,
            line=definition.line,
        )
        self.table.register_aggregate(entry)
        if typedef_name and typedef_name != primary:
            self.table.register_alias(typedef_name, primary)
        if definition.tag:
            self.table.register_alias(f"{kind.value} {definition.tag}", primary)
        return entry
