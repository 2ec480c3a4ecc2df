"""Tests for the gated cleanup of migrated data.

REQ: nothing is deleted without explicit confirmation and an existing
backup; preserved accounts keep every row they own.
"""

import uuid
from datetime import UTC, datetime

import pytest
from sqlalchemy import func, select, update

from migrator.core.errors import (
    BackupMissingError,
    ConfirmationRequiredError,
    MigrationError,
)
from migrator.models import (
    Agency,
    AgencyClient,
    Candidate,
    CandidateDiscAssessment,
    CandidateProfile,
    CandidateResume,
    Company,
    Job,
    JobApplication,
    JobMatch,
    JobSkill,
    PlatformUser,
)
from migrator.models.legacy import (
    LegacyApplication,
    LegacyDiscSession,
    LegacySavedResume,
)
from migrator.services.destructive_gate import DestructiveGate, GateState
from migrator.services.phase_runner import run_migration
from tests.conftest import (
    AGENCY_SLUG,
    CANDIDATE_EMAIL,
    CANDIDATE_ID,
    FAR_FUTURE,
    LEGACY_JOB_ID,
    SOURCE_CREATED_AT,
    legacy_dataset,
    make_user,
    seed_source,
)

OTHER_ID = uuid.UUID("00000000-0000-0000-0000-00000000000d")
OTHER_EMAIL = "ben.reyes@example.com"


async def _count(session, model) -> int:
    return await session.scalar(select(func.count()).select_from(model))


@pytest.fixture
def backup_file(tmp_path):
    path = tmp_path / "2025-01-15" / "migrated-data-backup.json"
    path.parent.mkdir()
    path.write_text("{}", encoding="utf-8")
    return path


@pytest.fixture
def verified_gate(backup_file) -> DestructiveGate:
    gate = DestructiveGate(backup_file)
    gate.verify(confirmed=True)
    return gate


def other_candidate_rows() -> list:
    """A second known candidate with a resume, an assessment, and an application."""
    other = str(OTHER_ID)
    return [
        make_user(OTHER_ID, OTHER_EMAIL, first_name="Ben", last_name="Reyes"),
        LegacySavedResume(
            id=2,
            user_id=other,
            resume_slug="ben-reyes-resume",
            resume_title="Ben Reyes - Sales",
            created_at=SOURCE_CREATED_AT,
        ),
        LegacyDiscSession(
            id="disc-2",
            user_id=other,
            session_status="completed",
            created_at=SOURCE_CREATED_AT,
        ),
        LegacyApplication(
            id="application-2",
            user_id=other,
            job_id=LEGACY_JOB_ID,
            resume_slug="ben-reyes-resume",
            status="submitted",
            created_at=SOURCE_CREATED_AT,
        ),
    ]


@pytest.fixture
async def migrated(source_engine, source_store, destination_store, identity):
    identity.add(OTHER_ID, OTHER_EMAIL)
    await seed_source(source_engine, [*legacy_dataset(), *other_candidate_rows()])
    await run_migration(source_store, destination_store, identity)


class TestVerify:
    def test_refuses_without_confirmation(self, backup_file):
        gate = DestructiveGate(backup_file)

        with pytest.raises(ConfirmationRequiredError) as exc_info:
            gate.verify(confirmed=False)

        assert exc_info.value.code == "CONFIRMATION_REQUIRED"
        assert gate.state is GateState.ABORTED

    def test_refuses_without_backup(self, tmp_path):
        gate = DestructiveGate(tmp_path / "missing" / "migrated-data-backup.json")

        with pytest.raises(BackupMissingError) as exc_info:
            gate.verify(confirmed=True)

        assert exc_info.value.code == "BACKUP_MISSING"
        assert gate.state is GateState.ABORTED

    def test_confirmation_and_backup_verify_the_gate(self, verified_gate):
        assert verified_gate.state is GateState.BACKUP_VERIFIED

    @pytest.mark.asyncio
    async def test_execute_requires_verification(
        self, backup_file, destination_store
    ):
        gate = DestructiveGate(backup_file)

        with pytest.raises(MigrationError) as exc_info:
            await gate.execute(destination_store, FAR_FUTURE)

        assert exc_info.value.code == "GATE_NOT_VERIFIED"


class TestPreserveIds:
    @pytest.mark.asyncio
    async def test_emails_resolve_through_identity_provider(
        self, verified_gate, identity
    ):
        preserved = await verified_gate.resolve_preserve_ids(
            identity, emails=[CANDIDATE_EMAIL.upper()]
        )
        assert preserved == frozenset({CANDIDATE_ID})

    @pytest.mark.asyncio
    async def test_invalid_id_aborts(self, verified_gate, identity):
        with pytest.raises(MigrationError) as exc_info:
            await verified_gate.resolve_preserve_ids(identity, ids=["nope"])
        assert exc_info.value.code == "INVALID_PRESERVE_ID"

    @pytest.mark.asyncio
    async def test_unknown_email_aborts(self, verified_gate, identity):
        with pytest.raises(MigrationError) as exc_info:
            await verified_gate.resolve_preserve_ids(
                identity, emails=["nobody@example.com"]
            )
        assert exc_info.value.code == "UNKNOWN_PRESERVE_EMAIL"


class TestExecute:
    @pytest.mark.asyncio
    async def test_deletes_every_migrated_row(
        self, migrated, verified_gate, destination_store, destination_session
    ):
        result = await verified_gate.execute(destination_store, FAR_FUTURE)

        assert verified_gate.state is GateState.EXECUTED
        assert result.total_deleted > 0
        assert result.deleted["candidate"] == 2
        for model in (Candidate, PlatformUser, Job, Agency, JobApplication):
            assert await _count(destination_session, model) == 0

    @pytest.mark.asyncio
    async def test_rows_after_cutoff_survive(
        self, migrated, verified_gate, destination_store, destination_session
    ):
        cutoff = datetime(2020, 1, 1, tzinfo=UTC)

        result = await verified_gate.execute(destination_store, cutoff)

        assert result.total_deleted == 0
        assert await _count(destination_session, Candidate) == 2

    @pytest.mark.asyncio
    async def test_preserved_account_keeps_its_rows_and_their_parents(
        self, migrated, verified_gate, destination_store, destination_session
    ):
        result = await verified_gate.execute(
            destination_store, FAR_FUTURE, frozenset({CANDIDATE_ID})
        )

        assert result.preserved_ids == frozenset({CANDIDATE_ID})
        # The preserved candidate and everything it owns
        assert await _count(destination_session, Candidate) == 1
        assert await _count(destination_session, CandidateProfile) == 1
        assert await _count(destination_session, CandidateResume) == 2
        assert await _count(destination_session, JobApplication) == 1
        assert await _count(destination_session, JobMatch) == 1
        # Shared rows still referenced by surviving rows
        assert list(await destination_session.scalars(select(Job.slug))) == [
            f"job-{LEGACY_JOB_ID}"
        ]
        assert await _count(destination_session, JobSkill) == 2
        assert await _count(destination_session, AgencyClient) == 1
        assert list(await destination_session.scalars(select(Agency.slug))) == [
            AGENCY_SLUG
        ]
        assert await _count(destination_session, Company) == 1
        # Everyone else is gone, with the rows they own
        assert list(await destination_session.scalars(select(Candidate.id))) == [
            CANDIDATE_ID
        ]
        assert await _count(destination_session, PlatformUser) == 0
        for model in (
            CandidateProfile,
            CandidateResume,
            CandidateDiscAssessment,
            JobApplication,
        ):
            owners = set(await destination_session.scalars(select(model.candidate_id)))
            assert owners == {CANDIDATE_ID}
        assert result.deleted["candidate"] == 1
        assert result.deleted["disc_assessment"] == 1
        assert result.deleted["job_application"] == 1

    @pytest.mark.asyncio
    async def test_account_with_later_activity_is_kept(
        self, migrated, verified_gate, destination_store, destination_session
    ):
        """A row added after the cutoff keeps its account and what it points at."""
        await destination_session.execute(
            update(JobApplication)
            .where(JobApplication.candidate_id == CANDIDATE_ID)
            .values(created_at=datetime(2030, 1, 1, tzinfo=UTC))
        )
        await destination_session.commit()

        result = await verified_gate.execute(
            destination_store, datetime(2025, 1, 1, tzinfo=UTC)
        )

        assert verified_gate.state is GateState.EXECUTED
        assert list(await destination_session.scalars(select(Candidate.id))) == [
            CANDIDATE_ID
        ]
        assert await _count(destination_session, JobApplication) == 1
        assert list(await destination_session.scalars(select(Job.slug))) == [
            f"job-{LEGACY_JOB_ID}"
        ]
        # Pre-cutoff rows that nothing surviving points at are still deleted
        assert result.deleted["candidate"] == 1
        assert result.deleted["candidate_profile"] == 2
        assert await _count(destination_session, CandidateDiscAssessment) == 0
        assert await _count(destination_session, PlatformUser) == 0
