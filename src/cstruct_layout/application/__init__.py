#!/usr/bin/env python3

"""Application layer: analysis orchestration."""

from .struct_analyzer import AnalysisResult, AnalysisSummary, StructAnalyzer, analyze_source

__all__ = [
    "AnalysisResult",
    "AnalysisSummary",
    "StructAnalyzer",
    "analyze_source",
]
