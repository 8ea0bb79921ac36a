"""
Pagination calculator.
"""
from dataclasses import dataclass
from typing import Optional

from dealdesk.core.errors import ValidationFailed
from dealdesk.schemas.deal import Pagination

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass(frozen=True)
class PageRequest:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def _parse_int(raw: Optional[str], field_name: str, default: int) -> int:
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw.strip())
    except ValueError:
        raise ValidationFailed(field_name, "must be an integer") from None


def parse_page_request(page: Optional[str], limit: Optional[str]) -> PageRequest:
    page_number = _parse_int(page, "page", DEFAULT_PAGE)
    page_size = _parse_int(limit, "limit", DEFAULT_LIMIT)
    if page_number < 1:
        raise ValidationFailed("page", "must be at least 1")
    if not 1 <= page_size <= MAX_LIMIT:
        raise ValidationFailed("limit", f"must be between 1 and {MAX_LIMIT}")
    return PageRequest(page_number, page_size)


def total_pages(total: int, limit: int) -> int:
    if total <= 0:
        return 1
    return (total + limit - 1) // limit


def paginate(request: PageRequest, total: int) -> Pagination:
    """
    Build the envelope for ``request`` given the matching row count.

    A page past the end is not an error: it comes back empty with
    ``has_next`` false.
    """
    pages = total_pages(total, request.limit)
    return Pagination(
        current_page=request.page,
        total_pages=pages,
        total_records=total,
        limit=request.limit,
        has_next=request.page < pages,
        has_prev=request.page > 1,
    )
