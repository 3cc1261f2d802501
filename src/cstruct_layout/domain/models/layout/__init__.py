#!/usr/bin/env python3

"""Layout models: fields, layouts, optimization results and diagnostics."""

from .aggregate_layout import AggregateLayout, OptimizationResult, OptimizationSkipReason
from .aggregate_record import AggregateRecord
from .diagnostic import Diagnostic, DiagnosticLog, ParseOutcome, Severity
from .field_descriptor import FieldDescriptor

__all__ = [
    "AggregateLayout",
    "AggregateRecord",
    "Diagnostic",
    "DiagnosticLog",
    "FieldDescriptor",
    "OptimizationResult",
    "OptimizationSkipReason",
    "ParseOutcome",
    "Severity",
]
