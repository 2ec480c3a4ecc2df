"""Per-run accumulation of counts, errors, and phase results."""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum


class PhaseState(str, Enum):
    """Lifecycle of one phase within a run."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"
    FAILED = "failed"


@dataclass(frozen=True)
class RowError:
    """A single record that was not migrated.

    Attributes:
        entity_kind: Kind of the record (e.g. "job_match").
        natural_key: The record's legacy natural key, as text.
        message: What went wrong.
    """

    entity_kind: str
    natural_key: str
    message: str

    def __str__(self) -> str:
        return f"{self.entity_kind} {self.natural_key}: {self.message}"


@dataclass
class PhaseResult:
    """Outcome of one phase.

    Attributes:
        name: Phase name.
        state: Final (or current) state.
        source_rows: Source rows counted when the phase started.
        errors: Row-level errors recorded during the phase.
        warnings: Skipped records recorded during the phase.
    """

    name: str
    state: PhaseState = PhaseState.PENDING
    source_rows: int = 0
    errors: int = 0
    warnings: int = 0


@dataclass
class RunContext:
    """Everything one migration run accumulates.

    Owned by the single task that drives the run; not shared.

    Attributes:
        written: Units written (inserted or updated) per entity kind.
        unchanged: Append-only units found already present, per entity kind.
        errors: Row-level failures, in order.
        warnings: Skipped records (orphans, unknown identities), in order.
        phases: Phase results in execution order.
    """

    written: Counter[str] = field(default_factory=Counter)
    unchanged: Counter[str] = field(default_factory=Counter)
    errors: list[RowError] = field(default_factory=list)
    warnings: list[RowError] = field(default_factory=list)
    phases: list[PhaseResult] = field(default_factory=list)
    _stop_requested: bool = False

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    def request_stop(self) -> None:
        """Ask the runner to stop at the next page boundary."""
        self._stop_requested = True

    def start_phase(self, name: str) -> PhaseResult:
        result = PhaseResult(name=name, state=PhaseState.RUNNING)
        self.phases.append(result)
        return result

    def record_written(self, entity_kind: str) -> None:
        self.written[entity_kind] += 1

    def record_unchanged(self, entity_kind: str) -> None:
        self.unchanged[entity_kind] += 1

    def record_error(
        self, entity_kind: str, natural_key: str, message: str
    ) -> RowError:
        error = RowError(entity_kind, natural_key, message)
        self.errors.append(error)
        if self.phases:
            self.phases[-1].errors += 1
        return error

    def record_warning(
        self, entity_kind: str, natural_key: str, message: str
    ) -> RowError:
        warning = RowError(entity_kind, natural_key, message)
        self.warnings.append(warning)
        if self.phases:
            self.phases[-1].warnings += 1
        return warning

    def summary_lines(self, limit: int = 10) -> list[str]:
        """Human-readable run summary.

        Args:
            limit: Maximum number of errors and of warnings listed.

        Returns:
            Lines with per-phase states, per-kind counts, and the first
            ``limit`` errors and warnings.
        """
        lines = ["Migration summary:"]
        for phase in self.phases:
            lines.append(
                f"  phase {phase.name}: {phase.state.value} "
                f"({phase.source_rows} source rows, {phase.errors} errors, "
                f"{phase.warnings} skipped)"
            )
        for kind, count in sorted(self.written.items()):
            lines.append(f"  {kind}: {count} written")
        for kind, count in sorted(self.unchanged.items()):
            lines.append(f"  {kind}: {count} already present")
        if self.stop_requested:
            lines.append("  run stopped early on request")
        for label, items in (("Errors", self.errors), ("Skipped", self.warnings)):
            if not items:
                continue
            lines.append(f"{label}: {len(items)} (first {min(limit, len(items))})")
            lines.extend(
                f"  {index}. {item}" for index, item in enumerate(items[:limit], 1)
            )
        return lines
