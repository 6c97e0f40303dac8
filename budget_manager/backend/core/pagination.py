"""
Pagination Utilities.

Page-based pagination for list endpoints. Records are already loaded from
the sheet, so paging is a slice over the sorted list.
"""

import math
from dataclasses import dataclass
from typing import Any, Sequence

from fastapi import Query

from budget_manager.backend.core.config import get_app_config
from budget_manager.backend.schemas.base import PaginationInfo


@dataclass
class PageParams:
    """Pagination parameters extracted from query string."""

    page: int
    per_page: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page


def get_page_params(
    page: int = Query(default=1, ge=1, description="Page number, starting at 1"),
    per_page: int | None = Query(default=None, ge=1, description="Items per page"),
) -> PageParams:
    """
    FastAPI dependency for page parameters.

    per_page defaults to the configured value and is capped at the configured maximum.
    """
    config = get_app_config().application.pagination
    size = per_page if per_page is not None else config.default_per_page
    return PageParams(page=page, per_page=min(size, config.max_per_page))


def build_pagination(page: int, per_page: int, total: int) -> PaginationInfo:
    """Build the pagination block for a page of a list with `total` items."""
    total_pages = math.ceil(total / per_page) if per_page else 0
    return PaginationInfo(
        page=page,
        per_page=per_page,
        total=total,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1,
    )


def paginate(items: Sequence[Any], params: PageParams) -> tuple[list[Any], PaginationInfo]:
    """Slice one page out of items and describe it."""
    page_items = list(items[params.offset:params.offset + params.per_page])
    return page_items, build_pagination(params.page, params.per_page, len(items))
