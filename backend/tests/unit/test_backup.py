"""Tests for backup export and restore."""

import json
import uuid
from datetime import date

import pytest
from sqlalchemy import func, select

from migrator.core.config import BACKUP_FILE_NAME, BACKUP_METADATA_FILE_NAME
from migrator.core.errors import BackupError
from migrator.models import Candidate, CandidateProfile, Job, JobApplication
from migrator.services.backup import (
    RESTORE_ORDER,
    coerce_value,
    create_backup,
    load_backup,
    restore_backup,
)
from migrator.services.destructive_gate import DestructiveGate
from migrator.services.idempotent_writer import EntityKind
from migrator.services.phase_runner import run_migration
from tests.conftest import CANDIDATE_ID, FAR_FUTURE, legacy_dataset, seed_source

MIGRATION_DATE = date(2025, 1, 15)


async def _count(session, model) -> int:
    return await session.scalar(select(func.count()).select_from(model))


@pytest.fixture
async def migrated(source_engine, source_store, destination_store, identity):
    await seed_source(source_engine, legacy_dataset())
    await run_migration(source_store, destination_store, identity)


@pytest.fixture
async def backup_dir(migrated, destination_store, tmp_path):
    directory = tmp_path / MIGRATION_DATE.isoformat()
    await create_backup(
        destination_store,
        directory,
        cutoff=FAR_FUTURE,
        migration_date=MIGRATION_DATE,
    )
    return directory


class TestCreateBackup:
    @pytest.mark.asyncio
    async def test_writes_data_and_metadata(self, backup_dir):
        data = json.loads((backup_dir / BACKUP_FILE_NAME).read_text())
        metadata = json.loads((backup_dir / BACKUP_METADATA_FILE_NAME).read_text())

        assert [row["id"] for row in data["candidates"]] == [str(CANDIDATE_ID)]
        assert "full_name" not in data["candidates"][0]
        assert metadata["migration_date"] == "2025-01-15"
        assert metadata["record_counts"]["candidates"] == 1
        assert metadata["record_counts"]["jobs"] == 2
        assert metadata["tables"][0] == "candidates"

    def test_restore_order_covers_every_kind(self):
        assert set(RESTORE_ORDER) == set(EntityKind)


class TestRestoreBackup:
    @pytest.mark.asyncio
    async def test_restores_after_cleanup(
        self, backup_dir, destination_store, destination_session
    ):
        gate = DestructiveGate(backup_dir / BACKUP_FILE_NAME)
        gate.verify(confirmed=True)
        await gate.execute(destination_store, FAR_FUTURE)
        assert await _count(destination_session, Candidate) == 0

        restored = await restore_backup(destination_store, backup_dir)

        assert restored["candidates"] == 1
        assert await _count(destination_session, Candidate) == 1
        assert await _count(destination_session, CandidateProfile) == 1
        assert await _count(destination_session, Job) == 2
        assert await _count(destination_session, JobApplication) == 1
        full_name = await destination_session.scalar(select(Candidate.full_name))
        assert full_name == "Ana Cruz"

    @pytest.mark.asyncio
    async def test_restoring_twice_does_not_duplicate(
        self, backup_dir, destination_store, destination_session
    ):
        await restore_backup(destination_store, backup_dir)
        await restore_backup(destination_store, backup_dir)

        assert await _count(destination_session, Candidate) == 1
        assert await _count(destination_session, Job) == 2

    @pytest.mark.asyncio
    async def test_missing_backup_raises(self, destination_store, tmp_path):
        with pytest.raises(BackupError, match="No backup file"):
            await restore_backup(destination_store, tmp_path)


class TestLoadBackup:
    def test_rejects_non_mapping(self, tmp_path):
        (tmp_path / BACKUP_FILE_NAME).write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(BackupError, match="table mapping"):
            load_backup(tmp_path)

    def test_rejects_invalid_json(self, tmp_path):
        (tmp_path / BACKUP_FILE_NAME).write_text("{not json", encoding="utf-8")

        with pytest.raises(BackupError, match="Unreadable"):
            load_backup(tmp_path)


class TestCoerceValue:
    def test_uuid_text_becomes_uuid(self):
        column = Candidate.__table__.c.id
        assert coerce_value(column, str(CANDIDATE_ID)) == CANDIDATE_ID
        assert isinstance(coerce_value(column, str(CANDIDATE_ID)), uuid.UUID)

    def test_json_documents_are_kept(self):
        column = CandidateProfile.__table__.c.privacy_settings
        document = {"first_name": "public"}
        assert coerce_value(column, document) is document

    def test_dates_are_parsed(self):
        column = CandidateProfile.__table__.c.birthday
        assert coerce_value(column, "1995-06-30") == date(1995, 6, 30)

    def test_none_passes_through(self):
        assert coerce_value(Candidate.__table__.c.phone, None) is None
