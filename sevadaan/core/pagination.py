# sevadaan/core/pagination.py

import math
from dataclasses import dataclass

from fastapi import Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

DEFAULT_LIMIT = 10
MAX_LIMIT = 50


@dataclass
class PageParams:
    page: int = 1
    limit: int = DEFAULT_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def page_params(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
) -> PageParams:
    return PageParams(page=page, limit=limit)


def build_pagination(total: int, page: int, limit: int) -> dict:
    total_pages = math.ceil(total / limit) if limit > 0 else 0
    return {
        "currentPage": page,
        "totalPages": total_pages,
        "totalItems": total,
        "itemsPerPage": limit,
        "hasNextPage": page < total_pages,
        "hasPrevPage": page > 1,
    }


async def paginate(session: AsyncSession, query, params: PageParams):
    """
    Runs `query` for one page and counts the full result set.
    Returns (rows, pagination dict).
    """
    total = await session.scalar(select(func.count()).select_from(query.order_by(None).subquery()))
    result = await session.execute(query.offset(params.offset).limit(params.limit))
    rows = result.scalars().all()
    return rows, build_pagination(total or 0, params.page, params.limit)
