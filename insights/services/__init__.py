"""
Core services for the insight engine.

This package contains the trend and ranking helpers, the pattern detector
engine, the timing-interaction rules, adherence statistics and the report
service that ties them to an Entry Store.
"""

from .adherence import calculate_adherence, get_adherence_insights
from .detectors import BUILT_IN_DETECTORS, FunctionDetector, PatternDetector, PatternOptions
from .entry_store import (
    DuplicateEntryError,
    EntryNotFoundError,
    EntryStore,
    EntryStoreError,
)
from .pattern_engine import PatternEngine, Result, detect_patterns
from .report import InsightReportService
from .timing_rules import (
    TIMING_RULES,
    evaluate_timing_hints,
    evaluate_timing_rules,
    merge_timing_hints,
)
from .trends import calculate_trend, get_top_symptoms

__all__ = [
    "BUILT_IN_DETECTORS",
    "TIMING_RULES",
    "DuplicateEntryError",
    "EntryNotFoundError",
    "EntryStore",
    "EntryStoreError",
    "FunctionDetector",
    "InsightReportService",
    "PatternDetector",
    "PatternEngine",
    "PatternOptions",
    "Result",
    "calculate_adherence",
    "calculate_trend",
    "detect_patterns",
    "evaluate_timing_hints",
    "evaluate_timing_rules",
    "get_adherence_insights",
    "get_top_symptoms",
    "merge_timing_hints",
]
