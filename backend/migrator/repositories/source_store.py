"""Read access to the legacy (source) store.

Rows are read in creation order, ``(created_at, primary key)``, so that
paging is stable between pages of a single run and across runs.
"""

import logging
from collections.abc import Sequence
from typing import Any, TypeVar

from sqlalchemy import ColumnElement, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import DeclarativeBase, selectinload
from sqlalchemy.orm.interfaces import LoaderOption

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=DeclarativeBase)


def eager(*paths: Any) -> LoaderOption:
    """Build a selectin loader option for a relationship path.

    ``eager(LegacyMember.agency)`` loads one level;
    ``eager(LegacyJobRequest.company, LegacyMember.agency)`` chains.
    """
    option = selectinload(paths[0])
    for path in paths[1:]:
        option = option.selectinload(path)
    return option


class SourceStore:
    """Session-bound reader for the legacy schema.

    The session is never flushed or committed; reads only.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def count(
        self, model: type[ModelT], *criteria: ColumnElement[bool]
    ) -> int:
        """Count rows of a legacy table.

        Args:
            model: Legacy model class.
            *criteria: Optional WHERE clauses.

        Returns:
            Number of matching rows.
        """
        stmt = select(func.count()).select_from(model)
        if criteria:
            stmt = stmt.where(*criteria)
        result = await self._session.execute(stmt)
        return int(result.scalar_one())

    async def fetch_page(
        self,
        model: type[ModelT],
        *,
        offset: int,
        limit: int,
        options: Sequence[LoaderOption] = (),
    ) -> list[ModelT]:
        """Fetch one page of rows in creation order.

        Args:
            model: Legacy model class.
            offset: Number of rows to skip.
            limit: Page size.
            options: Eager-load options for related rows.

        Returns:
            Up to ``limit`` model instances.
        """
        order_by: list[Any] = []
        created_at = getattr(model, "created_at", None)
        if created_at is not None:
            order_by.append(created_at)
        order_by.extend(model.__mapper__.primary_key)

        stmt = (
            select(model)
            .options(*options)
            .order_by(*order_by)
            .offset(offset)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        rows = list(result.scalars().all())
        logger.debug(
            "Fetched %d %s rows at offset %d", len(rows), model.__tablename__, offset
        )
        return rows

    async def rollback(self) -> None:
        """Reset the read transaction after a failed query."""
        await self._session.rollback()
