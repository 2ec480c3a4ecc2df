"""Tests for ordered phase execution and per-row failure isolation."""

import pytest
from sqlalchemy.exc import OperationalError

from migrator.core.errors import PhaseFatalError, SkipRecord
from migrator.services.idempotent_writer import EntityKind
from migrator.services.phase_runner import PhaseRunner
from migrator.services.phases import Phase
from migrator.services.run_context import PhaseState, RunContext


def _db_down() -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception("connection refused"))


class ListPhase(Phase):
    """Phase over an in-memory list; behaviour per record is scripted."""

    name = "scripted"
    entity_kind = EntityKind.AGENCY
    source_model = object

    def __init__(
        self, records, *, fail_count=False, failing_offsets=(), error=_db_down
    ):
        self.records = list(records)
        self.fail_count = fail_count
        self.failing_offsets = set(failing_offsets)
        self.error = error
        self.seen: list = []

    async def count(self, source):
        if self.fail_count:
            raise self.error()
        return len(self.records)

    async def fetch_page(self, source, offset, limit):
        if offset in self.failing_offsets:
            raise self.error()
        return self.records[offset : offset + limit]

    async def migrate(self, record, units):
        self.seen.append(record)

        async def work():
            if record == "skip":
                raise SkipRecord("orphaned reference")
            if record == "boom":
                raise RuntimeError("constraint violated")
            if record == "stop":
                units.ctx.request_stop()
            if record == "present":
                return False
            return None

        await units.run(self.entity_kind, str(record), work)


def _runner(source_store, units, batch_size=2) -> PhaseRunner:
    return PhaseRunner(source_store, units, batch_size=batch_size)


class TestRowIsolation:
    @pytest.mark.asyncio
    async def test_failed_and_skipped_rows_do_not_stop_the_phase(
        self, source_store, units, run_ctx
    ):
        phase = ListPhase(["a", "b", "skip", "boom", "c"])

        await _runner(source_store, units).run([phase])

        assert phase.seen == ["a", "b", "skip", "boom", "c"]
        assert run_ctx.written["agency"] == 3
        assert [w.natural_key for w in run_ctx.warnings] == ["skip"]
        assert [e.natural_key for e in run_ctx.errors] == ["boom"]
        assert "RuntimeError: constraint violated" in run_ctx.errors[0].message
        result = run_ctx.phases[0]
        assert result.state is PhaseState.COMPLETED_WITH_ERRORS
        assert result.source_rows == 5
        assert (result.errors, result.warnings) == (1, 1)

    @pytest.mark.asyncio
    async def test_append_only_duplicates_count_as_unchanged(
        self, source_store, units, run_ctx
    ):
        await _runner(source_store, units).run([ListPhase(["present", "a"])])

        assert run_ctx.unchanged["agency"] == 1
        assert run_ctx.written["agency"] == 1
        assert run_ctx.phases[0].state is PhaseState.COMPLETED

    @pytest.mark.asyncio
    async def test_later_page_failure_is_a_row_error(
        self, source_store, units, run_ctx
    ):
        phase = ListPhase(["a", "b", "c", "d", "e"], failing_offsets={2})

        await _runner(source_store, units).run([phase])

        assert phase.seen == ["a", "b", "e"]
        assert len(run_ctx.errors) == 1
        assert run_ctx.errors[0].natural_key == "page offset=2 limit=2"


class TestFatalPhase:
    @pytest.mark.asyncio
    async def test_count_failure_aborts_the_run(self, source_store, units, run_ctx):
        broken = ListPhase(["a"], fail_count=True)
        after = ListPhase(["b"])

        with pytest.raises(PhaseFatalError) as exc_info:
            await _runner(source_store, units).run([broken, after])

        assert exc_info.value.code == "PHASE_FATAL"
        assert exc_info.value.phase == "scripted"
        assert run_ctx.phases[0].state is PhaseState.FAILED
        assert after.seen == []

    @pytest.mark.asyncio
    async def test_first_page_failure_aborts_the_run(self, source_store, units):
        broken = ListPhase(["a", "b"], failing_offsets={0})

        with pytest.raises(PhaseFatalError):
            await _runner(source_store, units).run([broken])

        assert broken.seen == []

    @pytest.mark.asyncio
    async def test_unreachable_store_is_fatal(self, source_store, units, run_ctx):
        """Driver connect errors arrive unwrapped and still abort cleanly."""

        def refused() -> ConnectionRefusedError:
            return ConnectionRefusedError(111, "Connect call failed")

        broken = ListPhase(["a"], fail_count=True, error=refused)

        with pytest.raises(PhaseFatalError) as exc_info:
            await _runner(source_store, units).run([broken])

        assert "Connect call failed" in exc_info.value.message
        assert run_ctx.phases[0].state is PhaseState.FAILED

    @pytest.mark.asyncio
    async def test_later_page_timeout_is_a_row_error(
        self, source_store, units, run_ctx
    ):
        phase = ListPhase(
            ["a", "b", "c", "d", "e"], failing_offsets={2}, error=TimeoutError
        )

        await _runner(source_store, units).run([phase])

        assert phase.seen == ["a", "b", "e"]
        assert [e.natural_key for e in run_ctx.errors] == ["page offset=2 limit=2"]
        assert run_ctx.phases[0].state is PhaseState.COMPLETED_WITH_ERRORS


class TestStopRequest:
    @pytest.mark.asyncio
    async def test_stop_is_honoured_at_the_page_boundary(
        self, source_store, units, run_ctx
    ):
        first = ListPhase(["stop", "a", "b", "c"])
        second = ListPhase(["d"])

        await _runner(source_store, units).run([first, second])

        # The unit that asked to stop still finishes its page
        assert first.seen == ["stop", "a"]
        assert second.seen == []
        assert run_ctx.stop_requested is True
        assert len(run_ctx.phases) == 1

    def test_batch_size_must_be_positive(self, source_store, units):
        with pytest.raises(ValueError, match="batch_size"):
            PhaseRunner(source_store, units, batch_size=0)


class TestRunSummary:
    def test_lists_at_most_limit_errors(self):
        ctx = RunContext()
        ctx.start_phase("jobs")
        for n in range(3):
            ctx.record_error("job", f"job-{n}", "bad row")
        ctx.record_warning("job_match", "u/999", "job not migrated")

        lines = ctx.summary_lines(limit=2)

        assert "Errors: 3 (first 2)" in lines
        assert "  2. job job-1: bad row" in lines
        assert not any("job-2" in line for line in lines)
        assert "Skipped: 1 (first 1)" in lines
        assert ctx.phases[0].errors == 3
