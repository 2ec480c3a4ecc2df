"""Command-line interface for the legacy platform migration.

Commands:
- migrate: run every phase (or, with --test, only compare record counts)
- backup: export migrated destination rows for a migration date
- cleanup: gated delete of migrated rows (requires --confirm and a backup)
- restore: reload a backup directory into the destination
"""

import asyncio
import contextlib
import signal
import uuid
from datetime import date, datetime
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from migrator.core.config import BACKUP_FILE_NAME, Settings, settings
from migrator.core.database import STORE_ERRORS, create_store_engines, open_sessions
from migrator.core.errors import (
    BackupMissingError,
    ConfirmationRequiredError,
    MigrationError,
    PhaseFatalError,
)
from migrator.core.logging import configure_logging
from migrator.providers.identity import DatabaseIdentityProvider
from migrator.repositories import DestinationStore, SourceStore
from migrator.services.backup import create_backup, restore_backup
from migrator.services.completion_auditor import AuditReport, CompletionAuditor
from migrator.services.destructive_gate import CleanupResult, DestructiveGate
from migrator.services.phase_runner import run_migration
from migrator.services.run_context import RunContext

app = typer.Typer(
    name="platform-migrate",
    help="Migrate the legacy recruitment platform database into the new schema.",
    no_args_is_help=True,
)

console = Console()
error_console = Console(stderr=True)

CLEANUP_GUIDANCE = """\
Cleanup deletes every migrated row created on or before the migration date.

Before running it:
  1. platform-migrate backup --migration-date YYYY-MM-DD
  2. platform-migrate cleanup --confirm --migration-date YYYY-MM-DD

Keep specific accounts with --preserve-id <uuid> or --preserve-email <email>.
Nothing was deleted."""

MigrationDateOption = Annotated[
    Optional[datetime],
    typer.Option(
        "--migration-date",
        formats=["%Y-%m-%d"],
        help="Migration date (defaults to MIGRATION_DATE).",
    ),
]


def _migration_day(value: datetime | None) -> date:
    return value.date() if value is not None else settings.migration_date


@app.callback()
def main(
    log_level: Annotated[
        Optional[str], typer.Option("--log-level", help="Override LOG_LEVEL.")
    ] = None,
) -> None:
    """Legacy platform migration engine."""
    configure_logging(log_level or settings.log_level)


# =============================================================================
# migrate
# =============================================================================


@app.command()
def migrate(
    test: Annotated[
        bool,
        typer.Option("--test", "-t", help="Only compare source and destination counts."),
    ] = False,
) -> None:
    """Run all migration phases in order."""
    if not test:
        console.print("This migrates ALL legacy data into the destination database.")
        console.print("Run with --test first to check record counts.")
    exit_code = asyncio.run(_migrate(settings, test=test))
    raise typer.Exit(exit_code)


def _install_stop_handler(ctx: RunContext) -> None:
    """Turn Ctrl-C into a request to stop at the next page boundary."""
    loop = asyncio.get_running_loop()
    with contextlib.suppress(NotImplementedError, RuntimeError):
        loop.add_signal_handler(signal.SIGINT, ctx.request_stop)


async def _migrate(config: Settings, *, test: bool) -> int:
    engines = create_store_engines(config)
    try:
        async with open_sessions(engines) as (source_session, destination_session):
            source = SourceStore(source_session)
            destination = DestinationStore(destination_session)
            identity = DatabaseIdentityProvider(
                destination_session, config.identity_users_table
            )
            auditor = CompletionAuditor(source, destination, identity)
            if test:
                return await _print_audit(auditor)

            ctx = RunContext()
            _install_stop_handler(ctx)
            try:
                await run_migration(
                    source,
                    destination,
                    identity,
                    batch_size=config.migration_batch_size,
                    ctx=ctx,
                )
            except PhaseFatalError as exc:
                error_console.print(f"Migration aborted: {exc.message}")
                print_summary(ctx, config.error_summary_limit)
                return 1

            print_summary(ctx, config.error_summary_limit)
            return await _print_audit(auditor)
    finally:
        await engines.dispose()


async def _print_audit(auditor: CompletionAuditor) -> int:
    try:
        report = await auditor.audit()
    except STORE_ERRORS as exc:
        error_console.print(f"Record count audit failed: {exc}", markup=False)
        return 1
    print_audit(report)
    return 0


def print_summary(ctx: RunContext, limit: int) -> None:
    for line in ctx.summary_lines(limit):
        console.print(line, markup=False, highlight=False)


def print_audit(report: AuditReport) -> None:
    table = Table(title="Record counts")
    table.add_column("Entity")
    table.add_column("Source", justify="right")
    table.add_column("Destination", justify="right")
    for kind, entry in report.entries.items():
        style = "red" if entry.gap else None
        table.add_row(
            kind, str(entry.source_count), str(entry.destination_count), style=style
        )
    console.print(table)
    console.print(f"Identity provider users: {report.identity_count}")
    if report.gaps:
        console.print(f"Entities with gaps: {', '.join(report.gaps)}")


# =============================================================================
# backup / restore
# =============================================================================


@app.command()
def backup(migration_date: MigrationDateOption = None) -> None:
    """Export migrated rows to <BACKUP_DIR>/<date>/."""
    day = _migration_day(migration_date)
    directory = settings.backup_path(day).parent
    try:
        counts = asyncio.run(_backup(settings, day, directory))
    except MigrationError as exc:
        error_console.print(f"Backup failed: {exc.message}")
        raise typer.Exit(1) from None
    console.print(f"Backup written to {directory} ({sum(counts.values())} rows)")


async def _backup(config: Settings, day: date, directory: Path) -> dict[str, int]:
    engines = create_store_engines(config)
    try:
        async with engines.destination_sessions() as session:
            manifest = await create_backup(
                DestinationStore(session),
                directory,
                cutoff=config.cleanup_cutoff(day),
                migration_date=day,
            )
            return manifest.record_counts
    finally:
        await engines.dispose()


@app.command()
def restore(
    backup_dir: Annotated[
        Path, typer.Argument(help="Backup directory containing the JSON export.")
    ],
) -> None:
    """Restore a backup, upserting rows by primary key."""
    if not (backup_dir / BACKUP_FILE_NAME).is_file():
        error_console.print(f"No {BACKUP_FILE_NAME} in {backup_dir}")
        raise typer.Exit(1)
    try:
        restored = asyncio.run(_restore(settings, backup_dir))
    except MigrationError as exc:
        error_console.print(f"Restore failed: {exc.message}")
        raise typer.Exit(1) from None
    console.print(f"Restored {sum(restored.values())} rows from {backup_dir}")


async def _restore(config: Settings, directory: Path) -> dict[str, int]:
    engines = create_store_engines(config)
    try:
        async with engines.destination_sessions() as session:
            return await restore_backup(DestinationStore(session), directory)
    finally:
        await engines.dispose()


# =============================================================================
# cleanup
# =============================================================================


@app.command()
def cleanup(
    confirm: Annotated[
        bool, typer.Option("--confirm", help="Actually delete migrated rows.")
    ] = False,
    preserve_id: Annotated[
        Optional[list[str]],
        typer.Option("--preserve-id", help="Account id to keep (repeatable)."),
    ] = None,
    preserve_email: Annotated[
        Optional[list[str]],
        typer.Option("--preserve-email", help="Account email to keep (repeatable)."),
    ] = None,
    migration_date: MigrationDateOption = None,
) -> None:
    """Delete migrated rows created on or before the migration date."""
    day = _migration_day(migration_date)
    gate = DestructiveGate(settings.backup_path(day))
    try:
        gate.verify(confirmed=confirm)
    except ConfirmationRequiredError:
        console.print(CLEANUP_GUIDANCE, markup=False)
        raise typer.Exit(0) from None
    except BackupMissingError as exc:
        error_console.print(exc.message, markup=False)
        raise typer.Exit(1) from None

    emails = [*settings.cleanup_preserve_emails, *(preserve_email or [])]
    try:
        result = asyncio.run(
            run_cleanup(gate, settings, day, list(preserve_id or []), emails)
        )
    except MigrationError as exc:
        error_console.print(f"Cleanup failed: {exc.message}", markup=False)
        raise typer.Exit(1) from None

    console.print(
        f"Deleted {result.total_deleted} rows; kept {len(result.preserved_ids)} accounts."
    )
    for kind, count in result.deleted.items():
        console.print(f"  {kind}: {count}")


async def run_cleanup(
    gate: DestructiveGate,
    config: Settings,
    day: date,
    preserve_ids: list[str],
    preserve_emails: list[str],
) -> CleanupResult:
    """Resolve the preserve set and execute a verified gate."""
    engines = create_store_engines(config)
    try:
        async with engines.destination_sessions() as session:
            identity = DatabaseIdentityProvider(session, config.identity_users_table)
            preserved: frozenset[uuid.UUID] = await gate.resolve_preserve_ids(
                identity, preserve_ids, preserve_emails
            )
            return await gate.execute(
                DestinationStore(session), config.cleanup_cutoff(day), preserved
            )
    finally:
        await engines.dispose()


if __name__ == "__main__":
    app()
