"""Tests for insert-or-update by natural key."""

from datetime import UTC, datetime
from types import SimpleNamespace

import pytest
from sqlalchemy import func, select

from migrator.core.errors import UnsupportedDialectError
from migrator.models import Agency, Candidate, CandidateDiscAssessment
from migrator.services.idempotent_writer import (
    ACCOUNT_KINDS,
    ENTITY_SPECS,
    EntityKind,
    IdempotentWriter,
)
from tests.conftest import CANDIDATE_EMAIL, CANDIDATE_ID

_CREATED = datetime(2024, 3, 1, tzinfo=UTC)


async def _count(session, model) -> int:
    return await session.scalar(select(func.count()).select_from(model))


def _candidate_fields(**overrides):
    fields = {
        "email": CANDIDATE_EMAIL,
        "first_name": "Ana",
        "last_name": "Cruz",
        "is_active": True,
        "email_verified": False,
        "created_at": _CREATED,
        "updated_at": _CREATED,
    }
    fields.update(overrides)
    return fields


def _disc_fields(candidate_id, **overrides):
    fields = {
        "candidate_id": candidate_id,
        "session_status": "completed",
        "total_questions": 30,
        "confidence_score": 0,
        "cultural_alignment": 95,
        "ai_assessment": {},
        "ai_bpo_roles": [],
        "core_responses": [],
        "personalized_responses": [],
        "response_patterns": {},
        "xp_earned": 0,
    }
    fields.update(overrides)
    return fields


class TestEntitySpecs:
    def test_every_kind_has_a_spec(self):
        assert set(ENTITY_SPECS) == set(EntityKind)

    def test_natural_keys_are_table_columns(self):
        for spec in ENTITY_SPECS.values():
            for name in spec.natural_key:
                assert name in spec.table.c

    def test_account_kinds_carry_generated_full_name(self):
        for kind in ACCOUNT_KINDS:
            assert ENTITY_SPECS[kind].table.c.full_name.computed is not None


class TestUpsert:
    @pytest.mark.asyncio
    async def test_same_natural_key_converges_on_one_row(
        self, writer, destination_session
    ):
        first = await writer.upsert(
            EntityKind.AGENCY, {"slug": "acme"}, {"name": "Acme"}
        )
        second = await writer.upsert(
            EntityKind.AGENCY, {"slug": "acme"}, {"name": "Acme Staffing"}
        )

        assert second == first
        assert await _count(destination_session, Agency) == 1
        name = await destination_session.scalar(select(Agency.name))
        assert name == "Acme Staffing"

    @pytest.mark.asyncio
    async def test_create_only_fields_are_not_overwritten(
        self, writer, destination_session
    ):
        await writer.upsert(
            EntityKind.AGENCY,
            {"slug": "acme"},
            {"name": "Acme", "is_active": False},
            create_only=("is_active",),
        )
        await writer.upsert(
            EntityKind.AGENCY,
            {"slug": "acme"},
            {"name": "Acme", "is_active": True},
            create_only=("is_active",),
        )

        is_active = await destination_session.scalar(select(Agency.is_active))
        assert is_active is False

    @pytest.mark.asyncio
    async def test_only_create_only_fields_leaves_row_untouched(
        self, writer, destination_session
    ):
        first = await writer.upsert(
            EntityKind.AGENCY,
            {"slug": "acme"},
            {"name": "Acme"},
            create_only=("name",),
        )
        second = await writer.upsert(
            EntityKind.AGENCY,
            {"slug": "acme"},
            {"name": "Renamed"},
            create_only=("name",),
        )

        assert second == first
        assert await destination_session.scalar(select(Agency.name)) == "Acme"

    @pytest.mark.asyncio
    async def test_wrong_natural_key_columns_raise(self, writer):
        with pytest.raises(ValueError, match="must be"):
            await writer.upsert(EntityKind.AGENCY, {"name": "Acme"}, {})

    @pytest.mark.asyncio
    async def test_null_natural_key_raises(self, writer):
        with pytest.raises(ValueError, match="null columns"):
            await writer.upsert(EntityKind.AGENCY, {"slug": None}, {"name": "Acme"})

    @pytest.mark.asyncio
    async def test_unsupported_dialect_raises(self):
        writer = IdempotentWriter(SimpleNamespace(dialect_name="mysql"))

        with pytest.raises(UnsupportedDialectError) as exc_info:
            await writer.upsert(EntityKind.AGENCY, {"slug": "acme"}, {"name": "A"})

        assert exc_info.value.code == "UNSUPPORTED_DIALECT"


class TestAccountWrites:
    @pytest.mark.asyncio
    async def test_candidate_keeps_identity_id_and_computes_full_name(
        self, writer, destination_session
    ):
        account_id = await writer.upsert(
            EntityKind.CANDIDATE, {"id": CANDIDATE_ID}, _candidate_fields()
        )

        assert account_id == CANDIDATE_ID
        row = (
            await destination_session.execute(
                select(Candidate.id, Candidate.full_name)
            )
        ).one()
        assert row.id == CANDIDATE_ID
        assert row.full_name == "Ana Cruz"

    @pytest.mark.asyncio
    async def test_rewrite_updates_fields_but_not_create_only(
        self, writer, destination_session
    ):
        await writer.upsert(
            EntityKind.CANDIDATE,
            {"id": CANDIDATE_ID},
            _candidate_fields(email_verified=True),
            create_only=("email_verified",),
        )
        await writer.upsert(
            EntityKind.CANDIDATE,
            {"id": CANDIDATE_ID},
            _candidate_fields(first_name="Anna", email_verified=False),
            create_only=("email_verified",),
        )

        assert await _count(destination_session, Candidate) == 1
        row = (
            await destination_session.execute(
                select(Candidate.full_name, Candidate.email_verified)
            )
        ).one()
        assert row.full_name == "Anna Cruz"
        assert row.email_verified is True

    @pytest.mark.asyncio
    async def test_raw_write_is_limited_to_accounts(self, writer):
        with pytest.raises(ValueError, match="account kinds"):
            await writer.write_raw(EntityKind.AGENCY, {"id": CANDIDATE_ID})


class TestInsertIfAbsent:
    @pytest.mark.asyncio
    async def test_second_insert_reports_existing_row(
        self, writer, destination_session
    ):
        await writer.upsert(
            EntityKind.CANDIDATE, {"id": CANDIDATE_ID}, _candidate_fields()
        )
        first = await writer.insert_if_absent(
            EntityKind.DISC_ASSESSMENT,
            {"source_session_id": "disc-1"},
            _disc_fields(CANDIDATE_ID, d_score=40),
        )
        second = await writer.insert_if_absent(
            EntityKind.DISC_ASSESSMENT,
            {"source_session_id": "disc-1"},
            _disc_fields(CANDIDATE_ID, d_score=99),
        )

        assert first.created is True
        assert second.created is False
        assert second.id == first.id
        assert await _count(destination_session, CandidateDiscAssessment) == 1
        d_score = await destination_session.scalar(
            select(CandidateDiscAssessment.d_score)
        )
        assert d_score == 40
