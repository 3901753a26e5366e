"""Pagination utilities for list endpoints."""

# Pagination limits
DEFAULT_PAGE = 1
DEFAULT_PER_PAGE = 20
MAX_PER_PAGE = 100


def page_count(total: int, per_page: int) -> int:
    """Number of pages needed for `total` items."""
    return (total + per_page - 1) // per_page if per_page > 0 else 0


def page_offset(page: int, per_page: int) -> int:
    return (page - 1) * per_page
