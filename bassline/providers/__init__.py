"""Analysis provider subpackage."""

from bassline.providers.analysis import (
    AnalysisProvider,
    SpotifyAnalysisProvider,
    StaticAnalysisProvider,
    parse_analysis,
)

__all__ = [
    "AnalysisProvider",
    "SpotifyAnalysisProvider",
    "StaticAnalysisProvider",
    "parse_analysis",
]
