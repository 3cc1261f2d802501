"""Infrastructure configuration module."""

from .analysis_config import SUPPORTED_ALIGNMENTS, AnalysisConfig
from .defaults import DEFAULT_CONFIG, get_config

__all__ = ["AnalysisConfig", "DEFAULT_CONFIG", "SUPPORTED_ALIGNMENTS", "get_config"]
