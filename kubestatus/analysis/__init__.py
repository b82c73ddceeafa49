"""Diagnostic analyzers and the marker pipeline."""

from kubestatus.analysis.pipeline import MarkerReport, MarkerScanner, collect_markers, sort_markers
from kubestatus.analysis.scanners import default_marker_scanners

__all__ = [
    "MarkerReport",
    "MarkerScanner",
    "collect_markers",
    "default_marker_scanners",
    "sort_markers",
]
