"""Access to the destination store.

Lookups and counts are open to every component. Writes go through
:meth:`DestinationStore.execute`, used only by the idempotent writer and
the backup exporter; :meth:`DestinationStore.raw_write` is the explicit
escape valve for tables the ORM cannot insert into (generated columns) and
is called only by the writer's account path.
"""

import logging
import uuid
from collections.abc import Mapping
from typing import Any

from sqlalchemy import ColumnElement, Executable, Result, TextClause, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


class DestinationStore:
    """Session-bound access to the destination schema.

    The caller owns transaction boundaries: nothing here commits unless
    :meth:`commit` is called.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @property
    def session(self) -> AsyncSession:
        """Underlying session (identity provider and tests share it)."""
        return self._session

    @property
    def dialect_name(self) -> str:
        """Name of the destination dialect (e.g. "postgresql", "sqlite")."""
        bind = self._session.bind
        if bind is None:
            return ""
        return bind.dialect.name

    async def find_id(
        self, model: type[DeclarativeBase], natural_key: Mapping[str, Any]
    ) -> uuid.UUID | None:
        """Look up a row's id by its natural key.

        Args:
            model: Destination model class.
            natural_key: Column name -> value for every natural-key column.

        Returns:
            The row's id, or None if absent.
        """
        table = model.__table__
        stmt = select(table.c.id).where(
            *(table.c[name] == value for name, value in natural_key.items())
        )
        result = await self._session.execute(stmt.limit(1))
        return result.scalar_one_or_none()

    async def count(
        self, model: type[DeclarativeBase], *criteria: ColumnElement[bool]
    ) -> int:
        """Count rows in a destination table."""
        stmt = select(func.count()).select_from(model)
        if criteria:
            stmt = stmt.where(*criteria)
        result = await self._session.execute(stmt)
        return int(result.scalar_one())

    async def execute(self, statement: Executable) -> Result[Any]:
        """Execute a Core statement built by the writer or exporter."""
        return await self._session.execute(statement)

    async def raw_write(
        self, statement: TextClause, params: Mapping[str, Any]
    ) -> None:
        """Execute an explicit-column-list SQL write.

        Args:
            statement: Textual statement with typed bind parameters.
            params: Bind parameter values.
        """
        logger.debug("Raw write: %s", statement.text.split(" (", 1)[0])
        await self._session.execute(statement, dict(params))

    async def commit(self) -> None:
        """Commit the current unit of work."""
        await self._session.commit()

    async def rollback(self) -> None:
        """Roll back the current unit of work."""
        await self._session.rollback()
