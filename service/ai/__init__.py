from __future__ import annotations

from .types import AnalysisError, AnalysisResult, Classifier, DecodeError

__all__ = [
    "AnalysisError",
    "AnalysisResult",
    "Classifier",
    "DecodeError",
    "LuminanceHeuristic",
    "analyze_locally",
]


def __getattr__(name: str):
    if name == "LuminanceHeuristic":
        from .heuristic import LuminanceHeuristic

        return LuminanceHeuristic
    if name == "analyze_locally":
        from .heuristic import analyze_locally

        return analyze_locally
    raise AttributeError(f"module 'service.ai' has no attribute {name!r}")
