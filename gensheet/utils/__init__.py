"""Utility modules."""

from gensheet.utils.pagination import (
    DEFAULT_PAGE,
    DEFAULT_PER_PAGE,
    MAX_PER_PAGE,
    page_count,
    page_offset,
)

__all__ = [
    "DEFAULT_PAGE",
    "DEFAULT_PER_PAGE",
    "MAX_PER_PAGE",
    "page_count",
    "page_offset",
]
