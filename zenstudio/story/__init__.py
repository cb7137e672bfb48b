"""Story graph state, navigation and branch conditions."""

from .conditions import evaluate_condition, parse_condition
from .graph import SegmentGraph, estimate_duration, word_count
from .navigation import NavigationEngine, NavigationStep

__all__ = [
    "NavigationEngine",
    "NavigationStep",
    "SegmentGraph",
    "estimate_duration",
    "evaluate_condition",
    "parse_condition",
    "word_count",
]
