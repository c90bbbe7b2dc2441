"""
Small framework-independent helpers.

Functions:
    calculate_pagination: Pagination metadata for bounded result sets
"""

from __future__ import annotations

import math


def calculate_pagination(total: int, page: int, per_page: int) -> dict:
    """
    Calculate pagination metadata.

    The page is clamped into [1, total_pages] so an out-of-range request
    returns the last page instead of an empty one.

    Args:
        total: Total number of items
        page: Requested page number (1-indexed)
        per_page: Items per page

    Example:
        calculate_pagination(total=45, page=3, per_page=20)
        # {"total": 45, "page": 3, "per_page": 20, "total_pages": 3,
        #  "has_next": False, "has_previous": True, "offset": 40}
    """
    total_pages = math.ceil(total / per_page) if per_page > 0 else 0
    page = max(1, min(page, total_pages or 1))

    return {
        "total": total,
        "page": page,
        "per_page": per_page,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_previous": page > 1,
        "offset": (page - 1) * per_page,
    }
