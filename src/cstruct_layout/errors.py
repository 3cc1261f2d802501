#!/usr/bin/env python3

"""Exception hierarchy for struct layout analysis.

Nothing in the layout core is fatal to an analysis call except an invalid
configuration. The remaining exceptions are raised inside a single aggregate's
parse/layout step and are turned into diagnostics by the analyzer.
"""


class StructLayoutError(Exception):
    """Base class for all analysis errors."""


class ConfigurationError(StructLayoutError, ValueError):
    """Raised when an analysis configuration breaks one of its invariants."""


class ResolutionError(StructLayoutError):
    """Raised when the type table would be mutated against its invariants."""


class FieldParseError(StructLayoutError):
    """Raised when a member declaration cannot be understood."""

    def __init__(self, message: str, statement: str | None = None):
        super().__init__(message)
        self.statement = statement
