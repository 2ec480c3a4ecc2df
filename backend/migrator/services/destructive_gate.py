"""Safety gate for the destructive cleanup of migrated data.

State machine::

    awaiting_confirmation --(no --confirm / no backup)--> aborted
    awaiting_confirmation --(--confirm + backup found)--> backup_verified
    backup_verified --(execute)--> executed

The gate refuses to delete anything unless the caller confirmed explicitly
and a backup artifact exists at the conventional path. Deletion then runs
children-first in a single transaction, scoped to rows created at or before
the cutoff. It never touches rows owned by a preserved account, and it keeps
any row that a surviving row still references.
"""

import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

import structlog
from sqlalchemy import Column

from migrator.core.database import STORE_ERRORS
from migrator.core.errors import (
    BackupMissingError,
    CleanupError,
    ConfirmationRequiredError,
    MigrationError,
)
from migrator.models import (
    AgencyClient,
    CandidateAiAnalysis,
    CandidateDiscAssessment,
    CandidateProfile,
    CandidateResume,
    CandidateTypingAssessment,
    Job,
    JobApplication,
    JobMatch,
    JobSkill,
)
from migrator.providers.identity import IdentityProvider
from migrator.repositories.destination_store import DestinationStore
from migrator.services.identity_resolver import parse_identity_id
from migrator.services.idempotent_writer import EntityKind, IdempotentWriter

logger = structlog.get_logger()


class GateState(str, Enum):
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    BACKUP_VERIFIED = "backup_verified"
    ABORTED = "aborted"
    EXECUTED = "executed"


_Exclusions = Sequence[tuple[str, Column[Any]]]

# Rows that keep an account alive when they survive the cleanup (created
# after the cutoff, or owned by a preserved account).
_CANDIDATE_REFERENCES: _Exclusions = tuple(
    ("id", model.__table__.c.candidate_id)
    for model in (
        CandidateProfile,
        CandidateResume,
        CandidateDiscAssessment,
        CandidateTypingAssessment,
        CandidateAiAnalysis,
        JobApplication,
        JobMatch,
    )
)

# Children before parents. Each step lists the (own column, referencing
# column) pairs that keep a row alive while a surviving row points at it.
CLEANUP_PLAN: list[tuple[EntityKind, _Exclusions]] = [
    (EntityKind.JOB_MATCH, ()),
    (EntityKind.APPLICATION, ()),
    (
        EntityKind.JOB_SKILL,
        (
            ("job_id", JobApplication.__table__.c.job_id),
            ("job_id", JobMatch.__table__.c.job_id),
        ),
    ),
    (
        EntityKind.JOB,
        (
            ("id", JobApplication.__table__.c.job_id),
            ("id", JobMatch.__table__.c.job_id),
            ("id", JobSkill.__table__.c.job_id),
        ),
    ),
    (EntityKind.AGENCY_CLIENT, (("id", Job.__table__.c.agency_client_id),)),
    (EntityKind.COMPANY, (("id", AgencyClient.__table__.c.company_id),)),
    (EntityKind.AGENCY, (("id", AgencyClient.__table__.c.agency_id),)),
    (EntityKind.AI_ANALYSIS, ()),
    (EntityKind.TYPING_ASSESSMENT, ()),
    (EntityKind.DISC_ASSESSMENT, ()),
    (
        EntityKind.RESUME,
        (
            ("id", JobApplication.__table__.c.resume_id),
            ("id", CandidateAiAnalysis.__table__.c.resume_id),
        ),
    ),
    (EntityKind.PROFILE, ()),
    (EntityKind.CANDIDATE, _CANDIDATE_REFERENCES),
    (EntityKind.PLATFORM_USER, ()),
]


@dataclass(frozen=True)
class CleanupResult:
    """Outcome of an executed cleanup.

    Attributes:
        deleted: Entity kind -> rows deleted.
        preserved_ids: Account ids whose rows were kept.
        cutoff: Inclusive creation-time bound used.
    """

    deleted: dict[str, int]
    preserved_ids: frozenset[uuid.UUID]
    cutoff: datetime

    @property
    def total_deleted(self) -> int:
        return sum(self.deleted.values())


class DestructiveGate:
    """Guards and executes the cleanup of migrated rows.

    Args:
        backup_path: Conventional backup artifact path for the migration date.
    """

    def __init__(self, backup_path: Path) -> None:
        self.backup_path = backup_path
        self.state = GateState.AWAITING_CONFIRMATION

    def verify(self, *, confirmed: bool) -> None:
        """Check the preconditions for deleting anything.

        Args:
            confirmed: Whether the caller passed the explicit confirmation flag.

        Raises:
            ConfirmationRequiredError: Without confirmation.
            BackupMissingError: When no backup artifact exists.
        """
        if not confirmed:
            self.state = GateState.ABORTED
            raise ConfirmationRequiredError()
        if not self.backup_path.is_file():
            self.state = GateState.ABORTED
            logger.error("Cleanup refused: backup missing", path=str(self.backup_path))
            raise BackupMissingError(str(self.backup_path))
        self.state = GateState.BACKUP_VERIFIED
        logger.info("Backup verified", path=str(self.backup_path))

    async def resolve_preserve_ids(
        self,
        identity: IdentityProvider,
        ids: Iterable[str] = (),
        emails: Iterable[str] = (),
    ) -> frozenset[uuid.UUID]:
        """Combine explicit ids and emails into the preserve set.

        Raises:
            MigrationError: If an id is not a UUID or an email is unknown.
                Cleanup must not silently delete an account the operator
                meant to keep.
        """
        preserved: set[uuid.UUID] = set()
        for raw in ids:
            parsed = parse_identity_id(raw)
            if parsed is None:
                raise MigrationError("INVALID_PRESERVE_ID", f"Not a UUID: {raw!r}")
            preserved.add(parsed)
        for email in emails:
            found = await identity.get_by_email(email)
            if found is None:
                raise MigrationError(
                    "UNKNOWN_PRESERVE_EMAIL", f"No identity with email {email!r}"
                )
            preserved.add(found.id)
        return frozenset(preserved)

    async def execute(
        self,
        store: DestinationStore,
        cutoff: datetime,
        preserve_ids: frozenset[uuid.UUID] = frozenset(),
    ) -> CleanupResult:
        """Delete migrated rows children-first in one transaction.

        Args:
            store: Destination store.
            cutoff: Rows with ``created_at <= cutoff`` are in scope.
            preserve_ids: Accounts whose rows are kept.

        Returns:
            CleanupResult with per-kind deletion counts.

        Raises:
            MigrationError: If the gate was not verified first.
            CleanupError: If a delete fails; nothing is deleted.
        """
        if self.state is not GateState.BACKUP_VERIFIED:
            raise MigrationError(
                "GATE_NOT_VERIFIED", f"Cleanup cannot run from state {self.state.value}"
            )
        writer = IdempotentWriter(store)
        deleted: dict[str, int] = {}
        try:
            for kind, exclusions in CLEANUP_PLAN:
                deleted[kind.value] = await writer.delete_scoped(
                    kind, cutoff, preserve_ids, exclusions
                )
            await store.commit()
        except STORE_ERRORS as exc:
            await store.rollback()
            self.state = GateState.ABORTED
            logger.error("Cleanup failed; rolled back", error=str(exc))
            raise CleanupError("Cleanup failed; no rows were deleted") from exc

        self.state = GateState.EXECUTED
        result = CleanupResult(
            deleted=deleted, preserved_ids=preserve_ids, cutoff=cutoff
        )
        logger.info(
            "Cleanup executed",
            deleted=result.total_deleted,
            preserved=len(preserve_ids),
        )
        return result
