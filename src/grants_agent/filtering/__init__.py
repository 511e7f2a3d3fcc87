"""Filtering of extracted records."""

from .relevance import RelevanceFilter, RelevanceResult, is_relevant

__all__ = ["RelevanceFilter", "RelevanceResult", "is_relevant"]
