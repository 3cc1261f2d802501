"""cstruct-layout - C/C++ struct layout analysis and padding optimization."""

from .application import AnalysisResult, StructAnalyzer, analyze_source
from .errors import ConfigurationError, FieldParseError, ResolutionError, StructLayoutError
from .infrastructure.config import AnalysisConfig

__all__ = [
    "AnalysisConfig",
    "AnalysisResult",
    "ConfigurationError",
    "FieldParseError",
    "ResolutionError",
    "StructAnalyzer",
    "StructLayoutError",
    "analyze_source",
]
