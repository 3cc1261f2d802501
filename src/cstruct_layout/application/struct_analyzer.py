#!/usr/bin/env python3

"""Struct layout analysis orchestrator (Application Layer).

Wires the domain services into one pure analysis call:

    normalize -> catalog -> bounded resolution loop -> optimize -> records

Every call builds and discards its own type table, so repeated calls with the
same text and configuration produce identical records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..domain.models.layout import (
    AggregateLayout,
    AggregateRecord,
    DiagnosticLog,
    ParseOutcome,
)
from ..domain.models.types import TypeTableEntry
from ..domain.repositories import TypeTable
from ..domain.services.layout import lay_out, optimize_layout
from ..domain.services.parsing import (
    FieldParser,
    TypeCatalogBuilder,
    TypeResolver,
    inspect_source,
    is_fully_resolved,
    normalize,
)
from ..infrastructure.config import AnalysisConfig
from ..infrastructure.logging import ProgressTracker, get_logger, log_timing

logger = get_logger(__name__)


@dataclass
class AnalysisSummary:
    """Totals over all records of one analysis call."""

    structs_analyzed: int = 0
    total_bytes: int = 0
    total_padding: int = 0
    potential_savings: int = 0
    optimizable_count: int = 0

    @property
    def padding_ratio(self) -> float:
        if self.total_bytes == 0:
            return 0.0
        return self.total_padding / self.total_bytes * 100

    @classmethod
    def from_records(cls, records: list[AggregateRecord]) -> AnalysisSummary:
        return cls(
            structs_analyzed=len(records),
            total_bytes=sum(r.total_size for r in records),
            total_padding=sum(r.padding_bytes for r in records),
            potential_savings=sum(r.memory_saved for r in records),
            optimizable_count=sum(1 for r in records if r.memory_saved > 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "structsAnalyzed": self.structs_analyzed,
            "totalBytes": self.total_bytes,
            "totalPadding": self.total_padding,
            "potentialSavings": self.potential_savings,
            "optimizableCount": self.optimizable_count,
            "paddingRatio": self.padding_ratio,
        }


@dataclass
class AnalysisResult:
    """Records, diagnostics and summary of one analysis call."""

    records: list[AggregateRecord]
    diagnostics: DiagnosticLog
    summary: AnalysisSummary
    outcomes: list[ParseOutcome[AggregateLayout]] = field(default_factory=list)

    @property
    def failures(self) -> list[ParseOutcome[AggregateLayout]]:
        return [o for o in self.outcomes if not o.ok]

    def to_dict(self) -> dict[str, Any]:
        return {
            "structs": [r.to_dict() for r in self.records],
            "diagnostics": [d.to_dict() for d in self.diagnostics],
            "summary": self.summary.to_dict(),
        }


class StructAnalyzer:
    """Analyzes C/C++ source text for aggregate layouts.

    The configuration is passed explicitly and validated on every call; no
    state survives between calls.
    """

    def __init__(self, config: AnalysisConfig | None = None):
        """Initialize analyzer.

        Args:
            config: Analysis configuration (defaults to an 8-byte target)
        """
        self.config = config if config is not None else AnalysisConfig()

    def parse_structs(self, text: str) -> list[AggregateRecord]:
        """Analyze ``text`` and return one record per top-level aggregate."""
        return self.analyze(text).records

    @log_timing
    def analyze(self, text: str) -> AnalysisResult:
        """Run the full analysis over ``text``.

        Args:
            text: C/C++ source text

        Returns:
            AnalysisResult with records in source order

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        self.config.validate()
        diagnostics = DiagnosticLog()
        tracker = ProgressTracker(logger)

        for warning in inspect_source(text):
            diagnostics.warning(warning)

        with tracker.track_operation("Normalize source"):
            normalized = normalize(text)

        with tracker.track_operation("Build type catalog"):
            table = TypeCatalogBuilder(diagnostics).build(normalized)

        resolver = TypeResolver(
            table,
            target_alignment=self.config.target_alignment,
            custom_type_sizes=self.config.custom_type_sizes,
            diagnostics=diagnostics,
        )
        parser = FieldParser(resolver, diagnostics)

        with tracker.track_operation("Resolve aggregates"):
            outcomes = self._resolve(table, parser, diagnostics, tracker)

        records: list[AggregateRecord] = []
        with tracker.track_operation("Optimize layouts"):
            for entry in table.aggregates(top_level_only=True):
                outcome = outcomes.get(id(entry))
                if outcome is None or not outcome.ok or outcome.value is None:
                    continue
                records.append(self._build_record(entry, outcome.value))

        tracker.report_summary()
        summary = AnalysisSummary.from_records(records)
        logger.debug(
            f"Analyzed {summary.structs_analyzed} aggregate(s): {summary.total_bytes} bytes, "
            f"{summary.total_padding} padding, {summary.potential_savings} saveable"
        )
        return AnalysisResult(records, diagnostics, summary, list(outcomes.values()))

    def effective_alignment(self, entry: TypeTableEntry) -> int:
        """1 for packed aggregates, else the target capped by ``#pragma pack``."""
        if entry.is_packed:
            return 1
        if entry.pack_value is not None:
            return min(self.config.target_alignment, entry.pack_value)
        return self.config.target_alignment

    def _resolve(
        self,
        table: TypeTable,
        parser: FieldParser,
        diagnostics: DiagnosticLog,
        tracker: ProgressTracker,
    ) -> dict[int, ParseOutcome[AggregateLayout]]:
        """Bounded fixed-point resolution over the queued aggregates.

        An aggregate resolves once all its fields resolve, or unconditionally on
        the final pass. A pass without progress makes the next pass final.
        """
        outcomes: dict[int, ParseOutcome[AggregateLayout]] = {}
        force_next = False

        for pass_index in range(self.config.max_passes):
            pending = [e for e in table.pending() if id(e) not in outcomes]
            if not pending:
                break

            forced = force_next or pass_index == self.config.max_passes - 1
            progress = False
            with tracker.track_pass(len(pending), forced):
                for entry in pending:
                    outcome = self._resolve_entry(entry, table, parser, diagnostics, forced)
                    if outcome is None:
                        continue
                    outcomes[id(entry)] = outcome
                    progress = True
                    if outcome.ok:
                        tracker.count_resolved()
                    else:
                        tracker.count_failed()

            if forced:
                break
            if not progress:
                logger.debug("No progress in resolution pass; forcing final pass")
                force_next = True

        return outcomes

    def _resolve_entry(
        self,
        entry: TypeTableEntry,
        table: TypeTable,
        parser: FieldParser,
        diagnostics: DiagnosticLog,
        forced: bool,
    ) -> ParseOutcome[AggregateLayout] | None:
        """Parse and lay out one aggregate.

        Returns:
            Outcome, or None when the aggregate has to wait for another pass
        """
        name = entry.display_name
        try:
            fields = parser.parse_body(entry.body, entry.pack_value, name, entry.line)
            if not is_fully_resolved(fields):
                if not forced:
                    return None
                parser.force_unresolved(fields, name, entry.line)

            layout = lay_out(fields, entry.kind, self.effective_alignment(entry), entry.align_attr)
            table.mark_resolved(entry, layout.fields, layout.total_size, layout.alignment)
            return ParseOutcome.success(name, layout)
        except Exception as e:
            logger.error(f"Failed to analyze '{name}' at line {entry.line}: {e}")
            diagnostics.error(f"Failed to analyze '{name}': {e}", aggregate=name, line=entry.line)
            return ParseOutcome.failure(name, str(e))

    def _build_record(self, entry: TypeTableEntry, layout: AggregateLayout) -> AggregateRecord:
        optimization = optimize_layout(
            layout, entry.kind, self.effective_alignment(entry), entry.align_attr
        )
        return AggregateRecord(
            name=entry.display_name,
            kind=entry.kind,
            fields=layout.fields,
            total_size=layout.total_size,
            padding_bytes=layout.padding_bytes,
            alignment=layout.alignment,
            optimization=optimization,
            source_match=entry.source_match,
            line=entry.line,
            is_packed=entry.is_packed,
            storage_bytes=layout.storage_bytes,
        )


def analyze_source(source_text: str, config: AnalysisConfig | None = None) -> AnalysisResult:
    """Analyze source text with an explicit configuration.

    Args:
        source_text: C/C++ source text
        config: Analysis configuration (defaults to an 8-byte target)

    Returns:
        AnalysisResult with one record per top-level aggregate

    Raises:
        ConfigurationError: If the configuration is invalid
    """
    return StructAnalyzer(config).analyze(source_text)
