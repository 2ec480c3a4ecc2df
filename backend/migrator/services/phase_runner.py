"""Ordered phase execution with per-row failure isolation.

Each phase counts its source rows, then pages through them in creation
order. Failing to count or to load the first page means the phase cannot
begin; that is fatal for the whole run. A later page that fails to load is
recorded as a row-level error and the phase continues with the next page.

Cancellation is cooperative: :meth:`RunContext.request_stop` is honoured at
page boundaries, never in the middle of a unit of work.
"""

from collections.abc import Sequence
from typing import Any

import structlog

from migrator.core.database import STORE_ERRORS
from migrator.core.errors import PhaseFatalError
from migrator.providers.identity import IdentityProvider
from migrator.repositories.destination_store import DestinationStore
from migrator.repositories.source_store import SourceStore
from migrator.services.identity_resolver import IdentityResolver
from migrator.services.idempotent_writer import IdempotentWriter
from migrator.services.phases import Phase, UnitRunner, default_phases
from migrator.services.run_context import PhaseResult, PhaseState, RunContext

logger = structlog.get_logger()

DEFAULT_BATCH_SIZE = 50


class PhaseRunner:
    """Drives phases in order against one source and one destination session.

    Args:
        source: Legacy store reader.
        units: Unit-of-work runner bound to the destination.
        batch_size: Source rows per page.
    """

    def __init__(
        self,
        source: SourceStore,
        units: UnitRunner,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        if batch_size < 1:
            msg = f"batch_size must be positive, got {batch_size}"
            raise ValueError(msg)
        self._source = source
        self._units = units
        self._batch_size = batch_size

    @property
    def ctx(self) -> RunContext:
        return self._units.ctx

    async def run(self, phases: Sequence[Phase]) -> RunContext:
        """Run phases in order until done or a stop is requested.

        Raises:
            PhaseFatalError: If a phase cannot begin.
        """
        for phase in phases:
            if self.ctx.stop_requested:
                logger.warning("Run stopped before phase", phase=phase.name)
                break
            await self.run_phase(phase)
        return self.ctx

    async def run_phase(self, phase: Phase) -> PhaseResult:
        """Run a single phase.

        Returns:
            The phase's result (also appended to the run context).

        Raises:
            PhaseFatalError: If counting or the first page fails.
        """
        result = self.ctx.start_phase(phase.name)
        log = logger.bind(phase=phase.name)
        try:
            total = await phase.count(self._source)
            page = await phase.fetch_page(self._source, 0, self._batch_size)
        except STORE_ERRORS as exc:
            result.state = PhaseState.FAILED
            log.error("Phase could not start", error=str(exc))
            raise PhaseFatalError(phase.name, str(exc)) from exc

        result.source_rows = total
        log.info("Phase started", source_rows=total)

        offset = 0
        while True:
            for record in page:
                await phase.migrate(record, self._units)
            offset += self._batch_size
            log.info("Phase progress", processed=min(offset, total), total=total)
            if offset >= total:
                break
            if self.ctx.stop_requested:
                log.warning("Stop requested; leaving phase", offset=offset)
                break
            page = await self._next_page(phase, offset)

        result.state = (
            PhaseState.COMPLETED_WITH_ERRORS if result.errors else PhaseState.COMPLETED
        )
        log.info(
            "Phase finished",
            state=result.state.value,
            errors=result.errors,
            skipped=result.warnings,
        )
        return result

    async def _next_page(self, phase: Phase, offset: int) -> list[Any]:
        try:
            return await phase.fetch_page(self._source, offset, self._batch_size)
        except STORE_ERRORS as exc:
            await self._source.rollback()
            self.ctx.record_error(
                phase.entity_kind.value,
                f"page offset={offset} limit={self._batch_size}",
                str(exc),
            )
            logger.warning(
                "Page failed to load", phase=phase.name, offset=offset, error=str(exc)
            )
            return []


async def run_migration(
    source: SourceStore,
    destination: DestinationStore,
    identity: IdentityProvider,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    phases: Sequence[Phase] | None = None,
    ctx: RunContext | None = None,
) -> RunContext:
    """Run the full migration.

    Args:
        source: Legacy store reader.
        destination: Destination store.
        identity: Identity provider used to validate account ids.
        batch_size: Source rows per page.
        phases: Phases to run; defaults to all phases in order.
        ctx: Existing context (e.g. one wired to a signal handler).

    Returns:
        The run context with counts, errors, warnings, and phase results.

    Raises:
        PhaseFatalError: If a phase cannot begin.
    """
    ctx = ctx or RunContext()
    writer = IdempotentWriter(destination)
    resolver = IdentityResolver(identity, destination, writer)
    units = UnitRunner(destination, writer, resolver, ctx)
    runner = PhaseRunner(source, units, batch_size=batch_size)
    return await runner.run(phases if phases is not None else default_phases())
