#!/usr/bin/env python3

"""Recursive-descent parser for the declaration subset of C/C++.

Only what is needed to size aggregates is understood: attributes, type
specifiers, declarators (pointers, references, arrays, bitfields, function
pointers) and nested aggregate definitions inside bodies. Anything else in an
aggregate body (methods, access specifiers, static members) is recognized just
well enough to be skipped.
"""

from __future__ import annotations

from collections.abc import Mapping

from ....errors import FieldParseError
from ....infrastructure.logging import get_logger
from ...models.source import AggregateDefinition, AttributeSet, Declarator, MemberDecl, Token, TokenKind
from ...models.types import (
    ACCESS_SPECIFIERS,
    AGGREGATE_KEYWORDS,
    ATTRIBUTE_KEYWORDS,
    BUILTIN_TYPE_KEYWORDS,
    NON_STORAGE_SPECIFIERS,
    TYPE_QUALIFIERS,
)
from .constant_expression import evaluate_constant

logger = get_logger(__name__)

# GCC's alignment for a bare ``aligned`` attribute on common 64-bit targets
DEFAULT_ATTRIBUTE_ALIGNMENT = 16

_PACKED_NAMES = frozenset({"packed", "__packed__"})
_ALIGNED_NAMES = frozenset({"aligned", "__aligned__", "align"})
_TAG_KEYWORDS = frozenset({"struct", "union", "enum", "class"})
_SKIPPED_MEMBER_WORDS = NON_STORAGE_SPECIFIERS | {"inline", "explicit", "constexpr", "extern"}

_OPENERS = {"(": ")", "[": "]", "{": "}"}


def find_matching(tokens: list[Token], index: int) -> int | None:
    """Index of the bracket closing the one at ``index``, None if unbalanced."""
    opener = tokens[index].value
    closer = _OPENERS[opener]
    depth = 0
    for j in range(index, len(tokens)):
        t = tokens[j]
        if t.kind is not TokenKind.PUNCT:
            continue
        if t.value == opener:
            depth += 1
        elif t.value == closer:
            depth -= 1
            if depth == 0:
                return j
    return None


def join_tokens(tokens: list[Token]) -> str:
    """Render tokens back to compact declaration text."""
    text = ""
    for t in tokens:
        if text and (t.kind in (TokenKind.IDENT, TokenKind.NUMBER)) and (
            text[-1].isalnum() or text[-1] in "_$"
        ):
            text += " "
        elif text and t.value not in ",;)]" and text[-1] in ",;":
            text += " "
        text += t.value
    return text


def split_statements(tokens: list[Token]) -> list[list[Token]]:
    """Split an aggregate body into member statements.

    Statements end at ``;`` outside any brackets, or at the closing brace of a
    function body (C++ inline methods carry no trailing ``;``).
    """
    statements: list[list[Token]] = []
    current: list[Token] = []
    braces = 0
    brackets = 0

    for t in tokens:
        if t.kind is TokenKind.PUNCT:
            if t.value in ("(", "["):
                brackets += 1
            elif t.value in (")", "]"):
                brackets = max(0, brackets - 1)
            elif t.value == "{":
                braces += 1
            elif t.value == "}":
                braces = max(0, braces - 1)
                if braces == 0 and brackets == 0 and _is_function_body(current):
                    current.append(t)
                    statements.append(current)
                    current = []
                    continue
            elif t.value == ";" and braces == 0 and brackets == 0:
                if current:
                    statements.append(current)
                current = []
                continue
        current.append(t)

    if current:
        statements.append(current)
    return statements


def _is_function_body(statement: list[Token]) -> bool:
    """True if the ``{`` opening this statement's braces follows a parameter list."""
    if statement and statement[0].is_ident() and statement[0].value in _TAG_KEYWORDS | {"typedef"}:
        return False
    for t in statement:
        if t.is_punct("{"):
            return False
        if t.is_punct(")"):
            return True
    return False


class DeclarationParser:
    """Cursor-based parser over a token list."""

    def __init__(self, tokens: list[Token], constants: Mapping[str, int] | None = None):
        self.tokens = tokens
        self.constants = constants or {}
        self.i = 0

    # Cursor helpers

    def cur(self) -> Token | None:
        return self.tokens[self.i] if self.i < len(self.tokens) else None

    def peek(self, offset: int = 1) -> Token | None:
        j = self.i + offset
        return self.tokens[j] if 0 <= j < len(self.tokens) else None

    def at_end(self) -> bool:
        return self.i >= len(self.tokens)

    def at_punct(self, value: str) -> bool:
        t = self.cur()
        return t is not None and t.is_punct(value)

    def at_ident(self, value: str | None = None) -> bool:
        t = self.cur()
        return t is not None and t.is_ident(value)

    def skip_balanced(self) -> None:
        """Skip the bracketed group starting at the cursor."""
        end = find_matching(self.tokens, self.i)
        self.i = len(self.tokens) if end is None else end + 1

    def evaluate(self, tokens: list[Token]) -> int | None:
        return evaluate_constant(tokens, self.constants)

    # Attributes

    def at_attribute(self) -> bool:
        t = self.cur()
        if t is None:
            return False
        if t.kind is TokenKind.IDENT:
            return t.value in ATTRIBUTE_KEYWORDS or t.value == "__packed"
        return t.is_punct("[[")

    def parse_attributes(self) -> AttributeSet:
        """Consume any run of attribute specifiers at the cursor."""
        attrs = AttributeSet()
        while self.at_attribute():
            t = self.cur()
            if t.value == "__packed":
                attrs = attrs.merge(AttributeSet(packed=True))
                self.i += 1
            elif t.value == "[[":
                while not self.at_end() and not self.at_punct("]]"):
                    self.i += 1
                self.i += 1
            elif t.value in ("alignas", "_Alignas"):
                self.i += 1
                if not self.at_punct("("):
                    continue
                end = find_matching(self.tokens, self.i)
                if end is None:
                    self.i = len(self.tokens)
                    continue
                value = self.evaluate(self.tokens[self.i + 1 : end])
                if value is None:
                    logger.debug(f"Ignoring non-constant alignas({join_tokens(self.tokens[self.i + 1 : end])})")
                attrs = attrs.merge(AttributeSet(aligned=value))
                self.i = end + 1
            else:
                # __attribute__((...)) / __declspec(...)
                self.i += 1
                if not self.at_punct("("):
                    continue
                end = find_matching(self.tokens, self.i)
                if end is None:
                    self.i = len(self.tokens)
                    continue
                attrs = attrs.merge(self._attribute_arguments(self.tokens[self.i + 1 : end]))
                self.i = end + 1
        return attrs

    def _attribute_arguments(self, inner: list[Token]) -> AttributeSet:
        attrs = AttributeSet()
        k = 0
        while k < len(inner):
            t = inner[k]
            if t.kind is TokenKind.IDENT and t.value in _PACKED_NAMES:
                attrs = attrs.merge(AttributeSet(packed=True))
            elif t.kind is TokenKind.IDENT and t.value in _ALIGNED_NAMES:
                if k + 1 < len(inner) and inner[k + 1].is_punct("("):
                    end = find_matching(inner, k + 1)
                    if end is None:
                        break
                    value = self.evaluate(inner[k + 2 : end])
                    attrs = attrs.merge(AttributeSet(aligned=value))
                    k = end
                else:
                    attrs = attrs.merge(AttributeSet(aligned=DEFAULT_ATTRIBUTE_ALIGNMENT))
            k += 1
        return attrs

    # Type specifiers

    def skip_qualifiers(self) -> None:
        while self.at_ident() and self.cur().value in TYPE_QUALIFIERS:
            self.i += 1

    def skip_template_arguments(self) -> str:
        """Skip a ``<...>`` argument list, returning its text."""
        start = self.i
        depth = 0
        while not self.at_end():
            t = self.cur()
            if t.is_punct("<"):
                depth += 1
            elif t.is_punct(">"):
                depth -= 1
            elif t.is_punct(">>"):
                depth -= 2
            self.i += 1
            if depth <= 0:
                break
        return join_tokens(self.tokens[start : self.i])

    def parse_type_specifier(self) -> tuple[str, AttributeSet] | None:
        """Parse the type part of a declaration.

        Returns:
            (type name with qualifiers removed, attributes met on the way),
            or None if no type could be read
        """
        words: list[str] = []
        attrs = AttributeSet()
        named = False

        while not self.at_end():
            t = self.cur()
            if self.at_attribute():
                attrs = attrs.merge(self.parse_attributes())
                continue
            if t.kind is not TokenKind.IDENT:
                break
            if t.value in TYPE_QUALIFIERS:
                self.i += 1
                continue
            if named:
                break
            if t.value in _TAG_KEYWORDS and not words:
                nxt = self.peek()
                if nxt is None or nxt.kind is not TokenKind.IDENT:
                    break
                keyword = "struct" if t.value == "class" else t.value
                self.i += 2
                words = [keyword, self._qualified_name_rest(nxt.value)]
                named = True
                continue
            if t.value in BUILTIN_TYPE_KEYWORDS:
                words.append(t.value)
                self.i += 1
                continue
            if words:
                # Builtin keywords followed by an identifier: that is the declarator
                break
            self.i += 1
            words = [self._qualified_name_rest(t.value)]
            named = True

        if not words:
            return None
        return " ".join(words), attrs

    def _qualified_name_rest(self, first: str) -> str:
        """Continue a name through ``::`` scopes and template arguments."""
        name = first
        while True:
            if self.at_punct("<"):
                name += self.skip_template_arguments()
            elif self.at_punct("::") and self.peek() is not None and self.peek().kind is TokenKind.IDENT:
                name += "::" + self.peek().value
                self.i += 2
            else:
                return name

    # Declarators

    def parse_dimensions(self) -> tuple[list[int | None], list[str]]:
        """Parse ``[d1][d2]...``; unknown dimensions count as 1."""
        dims: list[int | None] = []
        unknown: list[str] = []
        while self.at_punct("["):
            end = find_matching(self.tokens, self.i)
            if end is None:
                raise FieldParseError("unterminated array dimension", join_tokens(self.tokens))
            expr = self.tokens[self.i + 1 : end]
            if not expr:
                dims.append(None)
            else:
                value = self.evaluate(expr)
                if value is None:
                    unknown.append(join_tokens(expr))
                    value = 1
                dims.append(value)
            self.i = end + 1
        return dims, unknown

    def _parse_pointers(self) -> tuple[int, bool]:
        depth = 0
        is_reference = False
        while not self.at_end():
            if self.at_punct("*") or self.at_punct("^"):
                depth += 1
                self.i += 1
            elif self.at_punct("&"):
                is_reference = True
                self.i += 1
            elif self.at_ident() and self.cur().value in TYPE_QUALIFIERS:
                self.i += 1
            elif self.at_attribute():
                self.parse_attributes()
            elif (
                self.at_ident()
                and self.peek() is not None
                and self.peek().is_punct("::")
                and self.peek(2) is not None
                and self.peek(2).is_punct("*")
            ):
                # Member pointer ``Class::*``
                self.i += 2
            else:
                break
        return depth, is_reference

    def parse_declarator(self) -> Declarator | None:
        """Parse one declarator.

        Returns:
            Declarator, or None if the declaration is a function (method)
        """
        attrs = self.parse_attributes()
        pointer_depth, is_reference = self._parse_pointers()
        unknown: list[str] = []
        is_function_pointer = False

        if self.at_punct("("):
            end = find_matching(self.tokens, self.i)
            if end is None:
                raise FieldParseError("unbalanced parentheses in declarator", join_tokens(self.tokens))
            inner = DeclarationParser(self.tokens[self.i + 1 : end], self.constants)
            inner_depth, inner_ref = inner._parse_pointers()
            if inner_depth == 0 and not inner_ref:
                # ``name(params)`` or a constructor: not a data member
                return None
            name = ""
            if inner.at_ident():
                name = inner.cur().value
                inner.i += 1
            dims, unknown = inner.parse_dimensions()
            self.i = end + 1
            if self.at_punct("("):
                self.skip_balanced()
                is_function_pointer = True
                pointer_depth = inner_depth
            else:
                # Pointer to array: the trailing dimensions belong to the pointee
                self.parse_dimensions()
                pointer_depth += inner_depth
            is_reference = is_reference or inner_ref
        else:
            name = ""
            if self.at_ident() and not self.at_attribute():
                name = self.cur().value
                self.i += 1
            if self.at_punct("("):
                return None
            dims, unknown = self.parse_dimensions()

        attrs = attrs.merge(self.parse_attributes())

        bits: int | None = None
        if self.at_punct(":"):
            self.i += 1
            start = self.i
            while not self.at_end() and not (
                self.at_punct(",") or self.at_punct("=") or self.at_punct("{") or self.at_attribute()
            ):
                self.i += 1
            expr = self.tokens[start : self.i]
            bits = self.evaluate(expr)
            if bits is None:
                unknown.append(join_tokens(expr))
                bits = 1
            attrs = attrs.merge(self.parse_attributes())

        # Default member initializers
        if self.at_punct("=") or self.at_punct("{"):
            self._skip_initializer()

        return Declarator(
            name=name,
            pointer_depth=pointer_depth,
            is_reference=is_reference,
            array_dims=tuple(dims),
            unknown_dims=tuple(unknown),
            bits=bits,
            is_function_pointer=is_function_pointer,
            attributes=attrs,
        )

    def _skip_initializer(self) -> None:
        while not self.at_end() and not self.at_punct(","):
            if self.cur().value in _OPENERS and self.cur().kind is TokenKind.PUNCT:
                self.skip_balanced()
            else:
                self.i += 1

    def parse_declarator_list(self) -> list[Declarator] | None:
        """Parse comma-separated declarators up to the end of the token list.

        Returns:
            Declarators, or None if the statement declares a function
        """
        declarators: list[Declarator] = []
        while not self.at_end():
            declarator = self.parse_declarator()
            if declarator is None:
                return None
            declarators.append(declarator)
            if self.at_punct(","):
                self.i += 1
                continue
            if not self.at_end():
                raise FieldParseError(
                    f"unexpected '{self.cur().value}' in declaration", join_tokens(self.tokens)
                )
        return declarators

    # Member statements

    def skip_access_specifiers(self) -> None:
        while (
            self.at_ident()
            and self.cur().value in ACCESS_SPECIFIERS
            and self.peek() is not None
            and self.peek().is_punct(":")
        ):
            self.i += 2

    def parse_member(self) -> MemberDecl | None:
        """Parse one member statement of an aggregate body.

        Returns:
            MemberDecl, or None for statements that declare no storage
            (methods, static members, nested typedefs, friend/using)

        Raises:
            FieldParseError: If the statement cannot be understood
        """
        text = join_tokens(self.tokens)
        self.skip_access_specifiers()
        if self.at_end():
            return None

        first = self.cur()
        if first.kind is TokenKind.IDENT and first.value in _SKIPPED_MEMBER_WORDS:
            logger.debug(f"Skipping non-storage member: {text}")
            return None
        if first.kind is not TokenKind.IDENT and not self.at_attribute():
            logger.debug(f"Skipping non-declaration member: {text}")
            return None

        attrs = self.parse_attributes()
        self.skip_qualifiers()
        start = self.i

        if self.at_ident() and self.cur().value in AGGREGATE_KEYWORDS:
            nested = self._parse_nested_aggregate(attrs, text)
            if nested is not None:
                return nested
            self.i = start
        elif self.at_ident("enum"):
            enum_member = self._parse_inline_enum(attrs, text)
            if enum_member is not None:
                return enum_member
            self.i = start

        specifier = self.parse_type_specifier()
        if specifier is None:
            raise FieldParseError("missing type specifier", text)
        type_name, type_attrs = specifier

        declarators = self.parse_declarator_list()
        if declarators is None:
            logger.debug(f"Skipping method declaration: {text}")
            return None
        if not declarators:
            raise FieldParseError("declaration without declarator", text)

        return MemberDecl(type_name=type_name, declarators=declarators, attributes=attrs.merge(type_attrs), text=text)

    def _parse_nested_aggregate(self, attrs: AttributeSet, text: str) -> MemberDecl | None:
        keyword = self.cur()
        self.i += 1
        attrs = attrs.merge(self.parse_attributes())
        tag = None
        if self.at_ident() and not self.at_attribute():
            tag = self.cur().value
            self.i += 1
        attrs = attrs.merge(self.parse_attributes())
        if not self.at_punct("{"):
            return None

        open_index = self.i
        close_index = find_matching(self.tokens, open_index)
        if close_index is None:
            raise FieldParseError("unterminated nested aggregate", text)
        body_tokens = self.tokens[open_index + 1 : close_index]
        self.i = close_index + 1

        suffix_attrs = self.parse_attributes()
        declarators = self.parse_declarator_list()
        if declarators is None:
            raise FieldParseError("nested aggregate followed by a function declarator", text)

        definition = AggregateDefinition(
            kind=keyword.value,
            tag=tag,
            body=join_tokens(body_tokens),
            body_tokens=body_tokens,
            attributes=attrs.merge(suffix_attrs),
            declarators=declarators,
            is_typedef=False,
            start=keyword.pos,
            end=self.tokens[close_index].pos,
            source_match=text,
        )
        type_name = f"{keyword.value} {tag}" if tag else keyword.value
        return MemberDecl(
            type_name=type_name,
            declarators=declarators,
            nested=definition,
            attributes=attrs,
            text=text,
        )

    def _parse_inline_enum(self, attrs: AttributeSet, text: str) -> MemberDecl | None:
        """``enum [Tag] [: type] { ... } name;`` members are sized as their underlying type."""
        self.i += 1
        if self.at_ident("class") or self.at_ident("struct"):
            self.i += 1
        if self.at_ident():
            self.i += 1
        underlying = "int"
        if self.at_punct(":"):
            self.i += 1
            specifier = self.parse_type_specifier()
            if specifier is not None:
                underlying = specifier[0]
        if not self.at_punct("{"):
            return None
        self.skip_balanced()
        declarators = self.parse_declarator_list()
        if not declarators:
            return None
        return MemberDecl(type_name=underlying, declarators=declarators, attributes=attrs, text=text)
