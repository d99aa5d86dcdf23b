"""Helpers for paginated, searchable list queries."""

from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.schemas.pagination import ListParams


async def fetch_page(
    db: AsyncSession,
    model: Any,
    stmt: Select,
    params: ListParams,
) -> tuple[list[Any], int]:
    """Count and page a filtered select of ``model``.

    ``params.sort_by`` must already be validated against the model's
    sortable columns. Ties are broken by id so ordering is stable.
    """
    count_result = await db.execute(select(func.count()).select_from(stmt.subquery()))
    total = count_result.scalar() or 0

    column = getattr(model, params.sort_by)
    order = column.asc() if params.sort == "asc" else column.desc()
    tiebreak = model.id.asc() if params.sort == "asc" else model.id.desc()

    result = await db.execute(
        stmt.order_by(order, tiebreak).offset(params.offset).limit(params.per_page)
    )
    return list(result.scalars().all()), total
