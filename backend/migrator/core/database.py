"""Async database engines and session factories for both stores.

The legacy (source) store is only ever read; the destination store is read
for lookups and written through the idempotent writer. Engines are built on
demand so importing the package never opens a connection.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from migrator.core.config import Settings

# Failures a store call can raise. asyncpg lets connect and timeout errors
# through unwrapped.
STORE_ERRORS: tuple[type[Exception], ...] = (SQLAlchemyError, OSError, TimeoutError)


@dataclass
class StoreEngines:
    """Engines and session factories for the source and destination stores."""

    source_engine: AsyncEngine
    destination_engine: AsyncEngine
    source_sessions: async_sessionmaker[AsyncSession]
    destination_sessions: async_sessionmaker[AsyncSession]

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self.source_engine.dispose()
        await self.destination_engine.dispose()


def create_store_engines(settings: Settings) -> StoreEngines:
    """Create engines for both stores from settings.

    Args:
        settings: Loaded migration settings.

    Returns:
        StoreEngines with one session factory per store.
    """
    source_engine = create_async_engine(
        settings.source_database_url,
        echo=False,
        pool_pre_ping=True,
    )
    destination_engine = create_async_engine(
        settings.destination_database_url,
        echo=False,
        pool_pre_ping=True,
    )
    return StoreEngines(
        source_engine=source_engine,
        destination_engine=destination_engine,
        source_sessions=async_sessionmaker(
            source_engine, class_=AsyncSession, expire_on_commit=False
        ),
        destination_sessions=async_sessionmaker(
            destination_engine, class_=AsyncSession, expire_on_commit=False
        ),
    )


@asynccontextmanager
async def open_sessions(
    engines: StoreEngines,
) -> AsyncGenerator[tuple[AsyncSession, AsyncSession], None]:
    """Open one source and one destination session for a command.

    The destination session is rolled back on error; committing is the
    caller's job (the phase runner commits per unit of work).
    """
    async with engines.source_sessions() as source, engines.destination_sessions() as destination:
        try:
            yield source, destination
        except Exception:
            await destination.rollback()
            raise
