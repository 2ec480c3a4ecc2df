"""Backup and restore of migrated destination rows.

A backup is a directory holding two JSON files:

- ``migrated-data-backup.json``: table name -> list of row objects
- ``backup-metadata.json``: backup date, migration date, table list, and
  per-table record counts

The destructive gate refuses to run unless the backup file exists.
Restore reloads the rows parent-first and upserts them by primary key, so
restoring twice is harmless.
"""

import json
from dataclasses import dataclass
from datetime import UTC, date, datetime
from functools import lru_cache
from pathlib import Path
from typing import Any

import structlog
from pydantic import TypeAdapter, ValidationError
from pydantic_core import to_jsonable_python
from sqlalchemy import JSON, Column, Table, select

from migrator.core.config import BACKUP_FILE_NAME, BACKUP_METADATA_FILE_NAME
from migrator.core.database import STORE_ERRORS
from migrator.core.errors import BackupError
from migrator.repositories.destination_store import DestinationStore
from migrator.services.idempotent_writer import (
    ENTITY_SPECS,
    EntityKind,
    IdempotentWriter,
)

logger = structlog.get_logger()

# Parents before children
RESTORE_ORDER: tuple[EntityKind, ...] = (
    EntityKind.CANDIDATE,
    EntityKind.PLATFORM_USER,
    EntityKind.PROFILE,
    EntityKind.RESUME,
    EntityKind.DISC_ASSESSMENT,
    EntityKind.TYPING_ASSESSMENT,
    EntityKind.AI_ANALYSIS,
    EntityKind.AGENCY,
    EntityKind.COMPANY,
    EntityKind.AGENCY_CLIENT,
    EntityKind.JOB,
    EntityKind.JOB_SKILL,
    EntityKind.APPLICATION,
    EntityKind.JOB_MATCH,
)


@dataclass(frozen=True)
class BackupManifest:
    """Contents of ``backup-metadata.json``."""

    backup_date: datetime
    migration_date: date
    tables: list[str]
    record_counts: dict[str, int]

    def to_json(self) -> dict[str, Any]:
        return to_jsonable_python(
            {
                "backup_date": self.backup_date,
                "migration_date": self.migration_date,
                "tables": self.tables,
                "record_counts": self.record_counts,
            }
        )


def _table(kind: EntityKind) -> Table:
    return ENTITY_SPECS[kind].table


def _backed_up_columns(table: Table) -> list[Column[Any]]:
    return [column for column in table.columns if column.computed is None]


async def create_backup(
    store: DestinationStore,
    directory: Path,
    *,
    cutoff: datetime,
    migration_date: date,
) -> BackupManifest:
    """Export every migrated destination row to a backup directory.

    Args:
        store: Destination store.
        directory: Target directory (created if missing).
        cutoff: Rows with ``created_at <= cutoff`` are exported.
        migration_date: Recorded in the metadata.

    Returns:
        The written manifest.

    Raises:
        BackupError: If reading rows or writing files fails.
    """
    data: dict[str, list[dict[str, Any]]] = {}
    try:
        for kind in RESTORE_ORDER:
            table = _table(kind)
            stmt = (
                select(*_backed_up_columns(table))
                .where(table.c.created_at <= cutoff)
                .order_by(table.c.created_at, table.c.id)
            )
            result = await store.execute(stmt)
            data[table.name] = [dict(row._mapping) for row in result]
    except STORE_ERRORS as exc:
        logger.error("Backup export failed", error=str(exc))
        raise BackupError("Could not read destination rows for backup") from exc

    manifest = BackupManifest(
        backup_date=datetime.now(UTC),
        migration_date=migration_date,
        tables=list(data),
        record_counts={name: len(rows) for name, rows in data.items()},
    )
    try:
        directory.mkdir(parents=True, exist_ok=True)
        (directory / BACKUP_FILE_NAME).write_text(
            json.dumps(to_jsonable_python(data), indent=2), encoding="utf-8"
        )
        (directory / BACKUP_METADATA_FILE_NAME).write_text(
            json.dumps(manifest.to_json(), indent=2), encoding="utf-8"
        )
    except OSError as exc:
        raise BackupError(f"Could not write backup to {directory}: {exc}") from exc

    logger.info(
        "Backup written",
        directory=str(directory),
        records=sum(manifest.record_counts.values()),
    )
    return manifest


@lru_cache(maxsize=None)
def _adapter(python_type: type) -> TypeAdapter[Any]:
    return TypeAdapter(python_type)


def coerce_value(column: Column[Any], value: Any) -> Any:
    """Convert a JSON-decoded value back into the column's Python type.

    JSON columns keep the decoded document as-is.
    """
    if value is None or isinstance(column.type, JSON):
        return value
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return value
    return _adapter(python_type).validate_python(value)


def load_backup(directory: Path) -> dict[str, list[dict[str, Any]]]:
    """Read ``migrated-data-backup.json`` from a backup directory.

    Raises:
        BackupError: If the file is missing or not a JSON object.
    """
    path = directory / BACKUP_FILE_NAME
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise BackupError(f"No backup file at {path}") from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise BackupError(f"Unreadable backup file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise BackupError(f"Backup file {path} does not contain a table mapping")
    return data


async def restore_backup(store: DestinationStore, directory: Path) -> dict[str, int]:
    """Restore a backup parent-first, upserting rows by primary key.

    Runs in one transaction: either every row is restored or none is.

    Args:
        store: Destination store.
        directory: Backup directory.

    Returns:
        Table name -> rows restored.

    Raises:
        BackupError: If the backup is unreadable or a row cannot be restored.
    """
    data = load_backup(directory)
    writer = IdempotentWriter(store)
    restored: dict[str, int] = {}
    try:
        for kind in RESTORE_ORDER:
            table = _table(kind)
            rows = data.get(table.name, [])
            columns = {column.name: column for column in _backed_up_columns(table)}
            for row in rows:
                values = {
                    name: coerce_value(columns[name], value)
                    for name, value in row.items()
                    if name in columns
                }
                await writer.restore_row(kind, values)
            restored[table.name] = len(rows)
        await store.commit()
    except (*STORE_ERRORS, ValidationError) as exc:
        await store.rollback()
        logger.error("Restore failed; rolled back", error=str(exc))
        raise BackupError(f"Restore from {directory} failed: {exc}") from exc

    logger.info("Backup restored", directory=str(directory), rows=sum(restored.values()))
    return restored
