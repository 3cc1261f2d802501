#!/usr/bin/env python3

"""Diagnostics and per-aggregate parse outcomes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class Severity(Enum):
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal issue found while analyzing source text."""

    severity: Severity
    message: str
    aggregate: str | None = None
    line: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity.value,
            "message": self.message,
            "aggregate": self.aggregate,
            "line": self.line,
        }


@dataclass
class DiagnosticLog:
    """Ordered, de-duplicated diagnostics collected during one analysis call."""

    entries: list[Diagnostic] = field(default_factory=list)

    def add(self, diagnostic: Diagnostic) -> bool:
        """Record a diagnostic unless an identical one is already present.

        Returns:
            True if the diagnostic was new
        """
        if diagnostic in self.entries:
            return False
        self.entries.append(diagnostic)
        return True

    def warning(self, message: str, aggregate: str | None = None, line: int | None = None) -> bool:
        return self.add(Diagnostic(Severity.WARNING, message, aggregate, line))

    def error(self, message: str, aggregate: str | None = None, line: int | None = None) -> bool:
        return self.add(Diagnostic(Severity.ERROR, message, aggregate, line))

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.entries if d.severity is Severity.WARNING]

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.entries if d.severity is Severity.ERROR]

    def __iter__(self):
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class ParseOutcome(Generic[T]):
    """Success-with-value or failure-with-reason for one aggregate."""

    name: str
    value: T | None = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.reason is None

    @classmethod
    def success(cls, name: str, value: T) -> ParseOutcome[T]:
        return cls(name=name, value=value)

    @classmethod
    def failure(cls, name: str, reason: str) -> ParseOutcome[T]:
        return cls(name=name, reason=reason)
