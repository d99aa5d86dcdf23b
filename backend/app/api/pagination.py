"""Lenient parsing of search, sort and pagination query parameters.

Bad values never fail the request; they fall back to defaults.
"""

from collections.abc import Callable, Iterable

from fastapi import Query

from app.schemas.pagination import ListParams

DEFAULT_PAGE = 0
DEFAULT_PER_PAGE = 10
MAX_PER_PAGE = 100
DEFAULT_SORT_BY = "updated_at"
DEFAULT_SORT = "desc"
SORT_ORDERS = frozenset({"asc", "desc"})


def parse_page(value: str | None) -> int:
    try:
        page = int(value) if value is not None else DEFAULT_PAGE
    except ValueError:
        return DEFAULT_PAGE
    return max(page, 0)


def parse_per_page(value: str | None) -> int:
    try:
        per_page = int(value) if value is not None else DEFAULT_PER_PAGE
    except ValueError:
        return DEFAULT_PER_PAGE
    if per_page < 1 or per_page > MAX_PER_PAGE:
        return MAX_PER_PAGE
    return per_page


def parse_sort(
    sort_by: str | None, sort: str | None, sort_fields: Iterable[str]
) -> tuple[str, str]:
    """Validate sort field and order together; either being invalid resets both."""
    sort_by = sort_by or DEFAULT_SORT_BY
    sort = sort or DEFAULT_SORT
    if sort_by not in sort_fields or sort not in SORT_ORDERS:
        return DEFAULT_SORT_BY, DEFAULT_SORT
    return sort_by, sort


def list_params(sort_fields: Iterable[str]) -> Callable[..., ListParams]:
    """Build a dependency that parses list query parameters for one resource."""
    allowed = frozenset(sort_fields)

    def dependency(
        q: str | None = Query(None, description="Search term"),
        sort_by: str | None = Query(None, description=f"One of: {', '.join(sorted(allowed))}"),
        sort: str | None = Query(None, description="asc or desc"),
        page: str | None = Query(None, description="0-based page number"),
        per_page: str | None = Query(None, description=f"Items per page (1-{MAX_PER_PAGE})"),
    ) -> ListParams:
        sort_by, sort = parse_sort(sort_by, sort, allowed)
        return ListParams(
            q=(q or "").strip(),
            sort_by=sort_by,
            sort=sort,
            page=parse_page(page),
            per_page=parse_per_page(per_page),
        )

    return dependency
