"""Pytest configuration and shared fixtures."""

import os
import sys
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from cstruct_layout.application import AnalysisResult, StructAnalyzer
from cstruct_layout.domain.models.layout import AggregateRecord
from cstruct_layout.infrastructure.config import AnalysisConfig


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Hide CSTRUCT_* variables of the calling shell and drop any a test loads."""
    for key in list(os.environ):
        if key.startswith("CSTRUCT_"):
            monkeypatch.delenv(key)
    yield
    for key in [k for k in os.environ if k.startswith("CSTRUCT_")]:
        del os.environ[key]


@pytest.fixture
def config() -> AnalysisConfig:
    """Default 8-byte target configuration."""
    return AnalysisConfig()


@pytest.fixture
def analyzer(config: AnalysisConfig) -> StructAnalyzer:
    """Analyzer for the default 8-byte target."""
    return StructAnalyzer(config)


@pytest.fixture
def analyzer_32() -> StructAnalyzer:
    """Analyzer for a 4-byte target."""
    return StructAnalyzer(AnalysisConfig(target_alignment=4))


@pytest.fixture
def analyze(analyzer: StructAnalyzer) -> Callable[[str], AnalysisResult]:
    """Analyze source text with the default analyzer."""
    return analyzer.analyze


@pytest.fixture
def record_of(analyzer: StructAnalyzer) -> Callable[..., AggregateRecord]:
    """Analyze source text and return the record with the given name."""

    def _record_of(source: str, name: str) -> AggregateRecord:
        records = {r.name: r for r in analyzer.parse_structs(source)}
        assert name in records, f"no record named {name!r}, got {sorted(records)}"
        return records[name]

    return _record_of
