"""Utility functions and helpers"""

from .file_filter import ExclusionFilter, DEFAULT_EXCLUDE_PATTERNS
from .location import classify_location

__all__ = ['ExclusionFilter', 'DEFAULT_EXCLUDE_PATTERNS', 'classify_location']
