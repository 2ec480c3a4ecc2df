"""Insert-or-update by natural key.

The writer is the only component that writes to the destination store.
Every entity kind has a natural key (a unique column set); writing the same
record twice converges on one row.

Three write modes:
- upsert: last write wins on every field except ``create_only`` ones,
  which are written on insert and never overwritten. JSON documents are
  replaced wholesale.
- insert_if_absent: append-only kinds (assessments) and scaffolding; an
  existing row is left untouched.
- account write: candidates and platform users carry a generated column,
  so they are written with an explicit column list through the store's
  raw-write path and keyed by the identity id.

PostgreSQL and SQLite are supported; both have ``INSERT ... ON CONFLICT``.
"""

import uuid
from collections.abc import Collection, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

import structlog
from sqlalchemy import Column, ColumnElement, Table, bindparam, delete, select, text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import DeclarativeBase

from migrator.core.errors import UnsupportedDialectError
from migrator.models import (
    Agency,
    AgencyClient,
    Candidate,
    CandidateAiAnalysis,
    CandidateDiscAssessment,
    CandidateProfile,
    CandidateResume,
    CandidateTypingAssessment,
    Company,
    Job,
    JobApplication,
    JobMatch,
    JobSkill,
    PlatformUser,
)
from migrator.repositories.destination_store import DestinationStore

logger = structlog.get_logger()


class EntityKind(str, Enum):
    """Destination entity kinds the engine writes."""

    CANDIDATE = "candidate"
    PLATFORM_USER = "platform_user"
    PROFILE = "candidate_profile"
    RESUME = "candidate_resume"
    DISC_ASSESSMENT = "disc_assessment"
    TYPING_ASSESSMENT = "typing_assessment"
    AI_ANALYSIS = "ai_analysis"
    AGENCY = "agency"
    COMPANY = "company"
    AGENCY_CLIENT = "agency_client"
    JOB = "job"
    JOB_SKILL = "job_skill"
    APPLICATION = "job_application"
    JOB_MATCH = "job_match"


@dataclass(frozen=True)
class EntitySpec:
    """How an entity kind maps onto the destination schema.

    Attributes:
        model: Destination model class.
        natural_key: Columns forming the unique key used for conflicts.
        owner_column: Column holding the owning candidate/account id, used
            to scope preserve lists during cleanup. None for shared rows.
    """

    model: type[DeclarativeBase]
    natural_key: tuple[str, ...]
    owner_column: str | None = None

    @property
    def table(self) -> Table:
        return self.model.__table__


ENTITY_SPECS: dict[EntityKind, EntitySpec] = {
    EntityKind.CANDIDATE: EntitySpec(Candidate, ("id",), "id"),
    EntityKind.PLATFORM_USER: EntitySpec(PlatformUser, ("id",), "id"),
    EntityKind.PROFILE: EntitySpec(CandidateProfile, ("candidate_id",), "candidate_id"),
    EntityKind.RESUME: EntitySpec(CandidateResume, ("slug",), "candidate_id"),
    EntityKind.DISC_ASSESSMENT: EntitySpec(
        CandidateDiscAssessment, ("source_session_id",), "candidate_id"
    ),
    EntityKind.TYPING_ASSESSMENT: EntitySpec(
        CandidateTypingAssessment, ("source_session_id",), "candidate_id"
    ),
    EntityKind.AI_ANALYSIS: EntitySpec(
        CandidateAiAnalysis, ("source_analysis_id",), "candidate_id"
    ),
    EntityKind.AGENCY: EntitySpec(Agency, ("slug",)),
    EntityKind.COMPANY: EntitySpec(Company, ("slug",)),
    EntityKind.AGENCY_CLIENT: EntitySpec(AgencyClient, ("agency_id", "company_id")),
    EntityKind.JOB: EntitySpec(Job, ("slug",)),
    EntityKind.JOB_SKILL: EntitySpec(JobSkill, ("job_id", "name")),
    EntityKind.APPLICATION: EntitySpec(
        JobApplication, ("candidate_id", "job_id"), "candidate_id"
    ),
    EntityKind.JOB_MATCH: EntitySpec(
        JobMatch, ("candidate_id", "job_id"), "candidate_id"
    ),
}

# Written through the raw-write path (generated full_name column)
ACCOUNT_KINDS = frozenset({EntityKind.CANDIDATE, EntityKind.PLATFORM_USER})

_INSERT_FACTORIES = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


@dataclass(frozen=True)
class WriteResult:
    """Outcome of an insert-if-absent write.

    Attributes:
        id: Destination id of the (new or existing) row.
        created: True if this call inserted the row.
    """

    id: uuid.UUID
    created: bool


class IdempotentWriter:
    """Writes normalized records into the destination by natural key.

    Args:
        store: Destination store bound to the run's session.
    """

    def __init__(self, store: DestinationStore) -> None:
        self._store = store

    # =========================================================================
    # Writes
    # =========================================================================

    async def upsert(
        self,
        kind: EntityKind,
        natural_key: Mapping[str, Any],
        fields: Mapping[str, Any],
        *,
        create_only: Collection[str] = (),
    ) -> uuid.UUID:
        """Insert a record or update the existing one with the same natural key.

        Args:
            kind: Entity kind.
            natural_key: Values for every natural-key column.
            fields: Remaining column values.
            create_only: Fields written on insert but never overwritten.

        Returns:
            Destination id of the written row.
        """
        spec = ENTITY_SPECS[kind]
        _check_natural_key(spec, natural_key)
        if kind in ACCOUNT_KINDS:
            return await self.write_raw(
                kind, {**natural_key, **fields}, create_only=create_only
            )

        values = {**natural_key, **fields}
        stmt = self._insert(spec.table).values(**values)
        updates = {
            name: stmt.excluded[name]
            for name in values
            if name not in natural_key and name not in create_only
        }
        if updates:
            stmt = stmt.on_conflict_do_update(
                index_elements=list(spec.natural_key), set_=updates
            )
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=list(spec.natural_key))

        result = await self._store.execute(stmt.returning(spec.table.c.id))
        row_id = result.scalar_one_or_none()
        if row_id is None:
            row_id = await self._existing_id(spec, natural_key)
        return row_id

    async def insert_if_absent(
        self,
        kind: EntityKind,
        natural_key: Mapping[str, Any],
        fields: Mapping[str, Any],
    ) -> WriteResult:
        """Insert a record only if no row has its natural key.

        Returns:
            WriteResult with the row id and whether it was created.
        """
        spec = ENTITY_SPECS[kind]
        _check_natural_key(spec, natural_key)
        stmt = (
            self._insert(spec.table)
            .values(**natural_key, **fields)
            .on_conflict_do_nothing(index_elements=list(spec.natural_key))
            .returning(spec.table.c.id)
        )
        result = await self._store.execute(stmt)
        row_id = result.scalar_one_or_none()
        if row_id is not None:
            return WriteResult(id=row_id, created=True)
        return WriteResult(id=await self._existing_id(spec, natural_key), created=False)

    async def write_raw(
        self,
        kind: EntityKind,
        values: Mapping[str, Any],
        *,
        create_only: Collection[str] = (),
    ) -> uuid.UUID:
        """Write an account row with an explicit column list.

        Generated columns are never listed. Conflicts on ``id`` update every
        listed column except ``id`` and ``create_only``.

        Args:
            kind: CANDIDATE or PLATFORM_USER.
            values: Column values including ``id``.
            create_only: Columns written on insert only.

        Returns:
            The account id.
        """
        if kind not in ACCOUNT_KINDS:
            msg = f"Raw writes are limited to account kinds, got {kind.value}"
            raise ValueError(msg)
        table = ENTITY_SPECS[kind].table
        columns = [
            column
            for column in table.columns
            if column.name in values and column.computed is None
        ]
        column_list = ", ".join(column.name for column in columns)
        placeholders = ", ".join(f":{column.name}" for column in columns)
        assignments = ", ".join(
            f"{column.name} = excluded.{column.name}"
            for column in columns
            if column.name != "id" and column.name not in create_only
        )
        conflict = (
            f"DO UPDATE SET {assignments}" if assignments else "DO NOTHING"
        )
        statement = text(
            f"INSERT INTO {table.name} ({column_list}) "  # noqa: S608
            f"VALUES ({placeholders}) ON CONFLICT (id) {conflict}"
        ).bindparams(*(bindparam(column.name, type_=column.type) for column in columns))
        await self._store.raw_write(
            statement, {column.name: values[column.name] for column in columns}
        )
        return values["id"]

    async def restore_row(self, kind: EntityKind, values: Mapping[str, Any]) -> None:
        """Upsert a backed-up row by primary key, keeping its original id."""
        if kind in ACCOUNT_KINDS:
            await self.write_raw(kind, values)
            return
        table = ENTITY_SPECS[kind].table
        stmt = self._insert(table).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["id"],
            set_={name: stmt.excluded[name] for name in values if name != "id"},
        )
        await self._store.execute(stmt)

    async def delete_scoped(
        self,
        kind: EntityKind,
        cutoff: datetime,
        preserve_ids: Collection[uuid.UUID] = (),
        exclude_referenced: Sequence[tuple[str, Column[Any]]] = (),
    ) -> int:
        """Delete migrated rows of one kind.

        Scope: ``created_at <= cutoff`` and owner not in ``preserve_ids``.
        Rows whose ``own_column`` value is still referenced by
        ``referencing_column`` in a surviving row are kept.

        Args:
            kind: Entity kind.
            cutoff: Inclusive creation-time upper bound.
            preserve_ids: Owner ids whose rows must survive.
            exclude_referenced: ``(own_column, referencing_column)`` pairs.

        Returns:
            Number of rows deleted.
        """
        spec = ENTITY_SPECS[kind]
        table = spec.table
        conditions: list[ColumnElement[bool]] = [table.c.created_at <= cutoff]
        if spec.owner_column is not None and preserve_ids:
            conditions.append(table.c[spec.owner_column].not_in(list(preserve_ids)))
        for own_column, referencing in exclude_referenced:
            conditions.append(
                table.c[own_column].not_in(
                    select(referencing).where(referencing.is_not(None))
                )
            )
        result = await self._store.execute(delete(table).where(*conditions))
        deleted = result.rowcount or 0
        logger.info("Scoped delete", entity_kind=kind.value, deleted=deleted)
        return deleted

    # =========================================================================
    # Helpers
    # =========================================================================

    def _insert(self, table: Table) -> Any:
        factory = _INSERT_FACTORIES.get(self._store.dialect_name)
        if factory is None:
            raise UnsupportedDialectError(self._store.dialect_name)
        return factory(table)

    async def _existing_id(
        self, spec: EntitySpec, natural_key: Mapping[str, Any]
    ) -> uuid.UUID:
        row_id = await self._store.find_id(spec.model, natural_key)
        if row_id is None:
            msg = f"{spec.table.name} row vanished after conflict on {dict(natural_key)}"
            raise LookupError(msg)
        return row_id


def _check_natural_key(spec: EntitySpec, natural_key: Mapping[str, Any]) -> None:
    if set(natural_key) != set(spec.natural_key):
        msg = (
            f"Natural key for {spec.table.name} must be {spec.natural_key}, "
            f"got {tuple(natural_key)}"
        )
        raise ValueError(msg)
    missing = [name for name, value in natural_key.items() if value is None]
    if missing:
        msg = f"Natural key for {spec.table.name} has null columns: {missing}"
        raise ValueError(msg)
