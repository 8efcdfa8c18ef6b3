"""Presentation helpers for startup timings."""

from .durations import DEFAULT_THRESHOLDS, ThresholdTable, category_for, format_ms, style_for

__all__ = ["DEFAULT_THRESHOLDS", "ThresholdTable", "category_for", "format_ms", "style_for"]
