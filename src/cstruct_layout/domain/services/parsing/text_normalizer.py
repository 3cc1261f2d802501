#!/usr/bin/env python3

"""Comment and preprocessor stripping.

Line structure is preserved: removed comments and directives leave their
newlines behind so offsets in the normalized text map to the same line
numbers as the original source.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from ....infrastructure.logging import get_logger
from ...models.source import PragmaPackRecord
from .tokenizer import parse_int_literal

logger = get_logger(__name__)

# String/char literals are matched first so comment markers inside them survive
_COMMENT_RE = re.compile(
    r"\"(?:\\.|[^\"\\\n])*\""
    r"|'(?:\\.|[^'\\\n])*'"
    r"|//[^\n]*"
    r"|/\*.*?(?:\*/|\Z)",
    re.DOTALL,
)

_PRAGMA_PACK_RE = re.compile(r"#\s*pragma\s+pack\s*\(\s*(?P<args>[^)]*?)\s*\)")
_NUMBER_RE = re.compile(r"0[xX][0-9a-fA-F]+|\d+")


@dataclass
class NormalizedSource:
    """Source text without comments and directives, plus pragma pack records."""

    text: str
    pragma_records: list[PragmaPackRecord] = field(default_factory=list)

    def line_of(self, position: int) -> int:
        """1-based line number of an offset in the normalized text."""
        return self.text.count("\n", 0, position) + 1


def strip_comments(text: str) -> str:
    """Remove ``//`` and ``/* */`` comments, keeping newlines and literals."""

    def _replace(match: re.Match[str]) -> str:
        token = match.group(0)
        if token.startswith("//"):
            return ""
        if token.startswith("/*"):
            newlines = token.count("\n")
            return "\n" * newlines if newlines else " "
        return token

    return _COMMENT_RE.sub(_replace, text)


def parse_pragma_pack(args_text: str, position: int) -> PragmaPackRecord | None:
    """Interpret the argument list of one ``#pragma pack(...)`` directive.

    Args:
        args_text: Text between the parentheses
        position: Offset in the normalized text where the directive stood

    Returns:
        Pragma record, or None if the form is not one we track
    """
    args = [a.strip() for a in args_text.split(",") if a.strip()]
    if not args:
        return PragmaPackRecord(position=position, is_pop=False)

    numbers = [parse_int_literal(a) for a in args if _NUMBER_RE.fullmatch(a)]
    value = numbers[-1] if numbers else None

    head = args[0]
    if head == "push":
        return PragmaPackRecord(position=position, is_pop=False, value=value, is_push=True)
    if head == "pop":
        return PragmaPackRecord(position=position, is_pop=True)
    if value is not None and len(args) == 1:
        return PragmaPackRecord(position=position, is_pop=False, value=value)

    logger.debug(f"Ignoring unsupported pragma pack form: pack({args_text})")
    return None


def _split_pragma_line(directive: str, position: int) -> tuple[str, list[PragmaPackRecord]]:
    """Split a ``#pragma pack`` line into kept code and pack records.

    Code written after the directive on the same line is kept, and further
    pack directives on that line are collected too.
    """
    kept: list[str] = []
    records: list[PragmaPackRecord] = []
    last = 0
    for match in _PRAGMA_PACK_RE.finditer(directive):
        kept.append(directive[last : match.start()] if last else "")
        record = parse_pragma_pack(match.group("args"), position + sum(len(k) for k in kept))
        if record is not None:
            records.append(record)
        last = match.end()
    kept.append(directive[last:])
    return "".join(kept), records


def normalize(text: str) -> NormalizedSource:
    """Strip comments and directives, collecting ``#pragma pack`` records.

    Args:
        text: Raw C/C++ source text

    Returns:
        NormalizedSource with the cleaned text and ordered pragma records
    """
    lines = strip_comments(text).splitlines(keepends=True)
    output: list[str] = []
    records: list[PragmaPackRecord] = []
    position = 0
    index = 0

    while index < len(lines):
        line = lines[index]
        stripped = line.lstrip()
        if not stripped.startswith("#"):
            output.append(line)
            position += len(line)
            index += 1
            continue

        # Gather backslash-continued directive lines
        directive_lines = [line]
        while directive_lines[-1].rstrip("\r\n").endswith("\\") and index + 1 < len(lines):
            index += 1
            directive_lines.append(lines[index])
        index += 1

        directive = " ".join(part.rstrip("\r\n").rstrip("\\") for part in directive_lines).strip()
        if _PRAGMA_PACK_RE.match(directive):
            kept, line_records = _split_pragma_line(directive, position)
            records.extend(line_records)
            output.append(kept)
            position += len(kept)

        for part in directive_lines:
            newline = "\n" if part.endswith("\n") else ""
            output.append(newline)
            position += len(newline)

    logger.debug(f"Normalized {len(lines)} lines, {len(records)} pragma pack records")
    return NormalizedSource(text="".join(output), pragma_records=records)
