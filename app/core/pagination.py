"""
Pagination Utility

One paging policy for every list endpoint: ``page`` is floored at 1 and
``limit`` is clamped to ``[1, MAX_PAGE_SIZE]``. Out-of-range values are
clamped and non-numeric values replaced by the defaults, never rejected.
"""

from math import ceil
from typing import Generic, List, Optional, TypeVar

from fastapi import Query
from pydantic import BaseModel, Field
from sqlalchemy import ColumnElement, Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.config import settings
from app.schemas.common_schemas import CamelModel


T = TypeVar("T")


class PaginationParams(BaseModel):
    """Clamped pagination parameters."""

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=settings.DEFAULT_PAGE_SIZE, ge=1)

    @classmethod
    def clamp(
        cls, page: Optional[int] = None, limit: Optional[int] = None
    ) -> "PaginationParams":
        page = 1 if page is None else max(page, 1)
        if limit is None:
            limit = settings.DEFAULT_PAGE_SIZE
        limit = min(max(limit, 1), settings.MAX_PAGE_SIZE)
        return cls(page=page, limit=limit)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


class PaginatedResponse(CamelModel, Generic[T]):
    """Generic paginated payload: ``{items, total, page, limit, totalPages}``."""

    items: List[T]
    total: int
    page: int
    limit: int
    total_pages: int


def total_pages_for(total: int, limit: int) -> int:
    return ceil(total / limit) if total > 0 else 0


def search_filter(term: Optional[str], *columns) -> Optional[ColumnElement[bool]]:
    """
    Case-insensitive partial match of ``term`` OR-ed across ``columns``.

    Returns None for a missing or blank term so callers can skip the filter.
    """
    if term is None or not term.strip():
        return None
    pattern = f"%{term.strip()}%"
    return or_(*(column.ilike(pattern) for column in columns))


class Paginator:
    """Runs a select with offset/limit and a total count."""

    @staticmethod
    async def paginate(
        db: AsyncSession,
        query: Select,
        params: PaginationParams,
        schema: Optional[type[BaseModel]] = None,
    ) -> PaginatedResponse:
        """
        Paginate a SQLAlchemy query.

        Args:
            db: Database session
            query: Select without limit/offset, ordering already applied
            params: Clamped pagination parameters
            schema: Optional Pydantic schema to validate items

        Returns:
            PaginatedResponse: Page of items plus totals

        Example:
            >>> query = select(Patient).where(Patient.is_active.is_(True))
            >>> params = PaginationParams.clamp(page=1, limit=10)
            >>> result = await Paginator.paginate(db, query, params, PatientResponseSchema)
        """
        count_query = select(func.count()).select_from(query.order_by(None).subquery())
        total = (await db.execute(count_query)).scalar() or 0

        result = await db.execute(query.offset(params.skip).limit(params.limit))
        items = list(result.scalars().all())

        if schema:
            items = [schema.model_validate(item, from_attributes=True) for item in items]

        return PaginatedResponse(
            items=items,
            total=total,
            page=params.page,
            limit=params.limit,
            total_pages=total_pages_for(total, params.limit),
        )


def parse_page_value(value: Optional[str]) -> Optional[int]:
    """Integer query value, or None (the default applies) when missing or not a number."""
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def get_pagination_params(
    page: Optional[str] = Query(default=None, description="Page number (starts at 1)"),
    limit: Optional[str] = Query(default=None, description="Items per page"),
) -> PaginationParams:
    """
    Dependency for pagination parameters.

    Non-numeric values fall back to the defaults instead of failing the request.

    Usage in route:
        @router.get("/appointments")
        async def list_appointments(
            pagination: PaginationParams = Depends(get_pagination_params)
        ):
            ...
    """
    return PaginationParams.clamp(page=parse_page_value(page), limit=parse_page_value(limit))
