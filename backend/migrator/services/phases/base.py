"""Phase base class and the unit-of-work runner shared by all phases.

A phase migrates one legacy table. Each source row becomes one or more
units of work (an account and then its profile; a job and then its skill
tags). A unit commits on success; on failure it is rolled back and recorded
against the run, and the phase moves on to the next unit.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from datetime import UTC, datetime
from typing import Any, ClassVar

import structlog
from sqlalchemy.orm.interfaces import LoaderOption

from migrator.core.errors import SkipRecord
from migrator.repositories.destination_store import DestinationStore
from migrator.repositories.source_store import SourceStore
from migrator.services.identity_resolver import IdentityResolver
from migrator.services.idempotent_writer import EntityKind, IdempotentWriter
from migrator.services.run_context import RunContext

logger = structlog.get_logger()

# A unit returns False when an append-only record was already present
UnitWork = Callable[[], Awaitable[bool | None]]


class UnitRunner:
    """Runs units of work with per-unit commit and failure isolation.

    Args:
        store: Destination store (transaction control).
        writer: Idempotent writer phases write through.
        resolver: Identity resolver phases resolve references with.
        ctx: Run context receiving counts, errors, and warnings.
    """

    def __init__(
        self,
        store: DestinationStore,
        writer: IdempotentWriter,
        resolver: IdentityResolver,
        ctx: RunContext,
    ) -> None:
        self._store = store
        self.writer = writer
        self.resolver = resolver
        self.ctx = ctx

    async def run(self, kind: EntityKind, natural_key: str, work: UnitWork) -> bool:
        """Execute one unit of work.

        Args:
            kind: Entity kind written by the unit (for counts and errors).
            natural_key: Legacy natural key of the record, for diagnostics.
            work: Coroutine function performing the writes.

        Returns:
            True if the unit committed.
        """
        try:
            outcome = await work()
            await self._store.commit()
        except SkipRecord as skip:
            await self._abort()
            self.ctx.record_warning(kind.value, natural_key, skip.reason)
            logger.warning(
                "Record skipped",
                entity_kind=kind.value,
                natural_key=natural_key,
                reason=skip.reason,
            )
            return False
        except Exception as exc:  # noqa: BLE001
            await self._abort()
            self.ctx.record_error(kind.value, natural_key, _describe(exc))
            logger.warning(
                "Record failed",
                entity_kind=kind.value,
                natural_key=natural_key,
                error=_describe(exc),
            )
            return False

        self.resolver.confirm()
        if outcome is False:
            self.ctx.record_unchanged(kind.value)
        else:
            self.ctx.record_written(kind.value)
        return True

    async def _abort(self) -> None:
        await self._store.rollback()
        self.resolver.discard()


class Phase(ABC):
    """One ordered step of the migration.

    Subclasses set the class attributes and implement :meth:`migrate`.

    Attributes:
        name: Phase name used in logs and the run summary.
        entity_kind: Kind recorded when a whole page fails to load.
        source_model: Legacy model the phase pages over.
    """

    name: ClassVar[str]
    entity_kind: ClassVar[EntityKind]
    source_model: ClassVar[type[Any]]

    def loader_options(self) -> Sequence[LoaderOption]:
        """Eager-load options for related legacy rows."""
        return ()

    async def count(self, source: SourceStore) -> int:
        """Number of source rows the phase will page over."""
        return await source.count(self.source_model)

    async def fetch_page(
        self, source: SourceStore, offset: int, limit: int
    ) -> list[Any]:
        """Fetch one page of source rows in creation order."""
        return await source.fetch_page(
            self.source_model,
            offset=offset,
            limit=limit,
            options=self.loader_options(),
        )

    @abstractmethod
    async def migrate(self, record: Any, units: UnitRunner) -> None:
        """Migrate one source row as one or more units of work."""
        ...


# =============================================================================
# Field helpers
# =============================================================================


def timestamp_or_now(value: datetime | None) -> datetime:
    """Source timestamp, or the current time when the source has none."""
    return value if value is not None else datetime.now(UTC)


def updated_or_created(record: Any) -> datetime:
    """Last-modified time of a source row.

    Falls back to the row's creation time so re-running an unchanged row
    writes the same value.
    """
    if record.updated_at is not None:
        return record.updated_at
    return timestamp_or_now(record.created_at)


def json_or(value: Any, default: Any) -> Any:
    """Source JSON document, or ``default`` when the source is null."""
    if value is None:
        return default
    return value


def _describe(exc: BaseException) -> str:
    message = str(exc).strip().splitlines()
    first_line = message[0] if message else ""
    return f"{type(exc).__name__}: {first_line}" if first_line else type(exc).__name__
