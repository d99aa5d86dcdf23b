"""Shared list response envelope."""

import math
from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class PageMeta(BaseModel):
    """Pagination metadata for list responses."""

    total_count: int
    total_pages: int
    current_page: int
    next_page: int


class Page(BaseModel, Generic[T]):
    """A page of results with its metadata."""

    meta: PageMeta
    data: list[T]


@dataclass(frozen=True)
class ListParams:
    """Normalised search, sort and pagination parameters for list endpoints."""

    q: str = ""
    sort_by: str = "updated_at"
    sort: str = "desc"
    page: int = 0
    per_page: int = 10

    @property
    def offset(self) -> int:
        return self.page * self.per_page


def build_page(items: list, total_count: int, params: ListParams) -> dict:
    """Wrap a page of items in the list envelope.

    next_page is page + 1 when more pages exist, otherwise 0.
    """
    total_pages = math.ceil(total_count / params.per_page) if params.per_page else 0
    next_page = params.page + 1 if params.page < total_pages - 1 else 0
    return {
        "meta": {
            "total_count": total_count,
            "total_pages": total_pages,
            "current_page": params.page,
            "next_page": next_page,
        },
        "data": items,
    }
