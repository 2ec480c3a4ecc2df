import uuid
from collections.abc import AsyncGenerator
from datetime import UTC, datetime

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from migrator.models.base import Base
from migrator.models.legacy import (
    LegacyAgency,
    LegacyAiAnalysis,
    LegacyApplication,
    LegacyDiscSession,
    LegacyExtractedResume,
    LegacyJobMatch,
    LegacyJobRequest,
    LegacyLeaderboardScore,
    LegacyMember,
    LegacyPrivacySettings,
    LegacySavedResume,
    LegacyTypingSession,
    LegacyUser,
    LegacyWorkStatus,
)
from migrator.models.legacy.base import LegacyBase
from migrator.providers.identity import MockIdentityProvider
from migrator.repositories import DestinationStore, SourceStore
from migrator.services.identity_resolver import IdentityResolver
from migrator.services.idempotent_writer import IdempotentWriter
from migrator.services.phases import UnitRunner
from migrator.services.run_context import RunContext

# In-memory SQLite shared by every session of one engine
SQLITE_URL = "sqlite+aiosqlite:///:memory:"

# Legacy account ids (identity provider UUIDs stored as text in the source)
CANDIDATE_ID = uuid.UUID("00000000-0000-0000-0000-00000000000a")
ADMIN_ID = uuid.UUID("00000000-0000-0000-0000-00000000000b")
UNKNOWN_ID = uuid.UUID("00000000-0000-0000-0000-00000000000c")

CANDIDATE_EMAIL = "ana.cruz@example.com"
ADMIN_EMAIL = "admin@example.com"

LEGACY_JOB_ID = 42
UNATTACHED_JOB_ID = 43
MEMBER_ID = "member-1"
AGENCY_SLUG = "acme-agency"
SAVED_RESUME_SLUG = "ana-cruz-resume"

SOURCE_CREATED_AT = datetime(2024, 3, 1, 9, 30, tzinfo=UTC)

# Cutoff after every row a test can create (scaffold rows use the clock)
FAR_FUTURE = datetime(2100, 1, 1, tzinfo=UTC)


def _enable_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


async def _sqlite_engine(metadata, *, foreign_keys: bool = False) -> AsyncEngine:
    engine = create_async_engine(
        SQLITE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    if foreign_keys:
        event.listen(engine.sync_engine, "connect", _enable_foreign_keys)
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    return engine


@pytest_asyncio.fixture
async def source_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Legacy schema in its own in-memory database."""
    engine = await _sqlite_engine(LegacyBase.metadata)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def destination_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Destination schema in its own in-memory database, foreign keys enforced."""
    engine = await _sqlite_engine(Base.metadata, foreign_keys=True)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def source_session(source_engine) -> AsyncGenerator[AsyncSession, None]:
    sessions = async_sessionmaker(
        source_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with sessions() as session:
        yield session


@pytest_asyncio.fixture
async def destination_session(
    destination_engine,
) -> AsyncGenerator[AsyncSession, None]:
    sessions = async_sessionmaker(
        destination_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with sessions() as session:
        yield session


@pytest.fixture
def source_store(source_session) -> SourceStore:
    return SourceStore(source_session)


@pytest.fixture
def destination_store(destination_session) -> DestinationStore:
    return DestinationStore(destination_session)


@pytest.fixture
def identity() -> MockIdentityProvider:
    """Identity provider knowing the candidate and the admin, not UNKNOWN_ID."""
    provider = MockIdentityProvider()
    provider.add(CANDIDATE_ID, CANDIDATE_EMAIL)
    provider.add(ADMIN_ID, ADMIN_EMAIL)
    return provider


@pytest.fixture
def writer(destination_store) -> IdempotentWriter:
    return IdempotentWriter(destination_store)


@pytest.fixture
def resolver(identity, destination_store, writer) -> IdentityResolver:
    return IdentityResolver(identity, destination_store, writer)


@pytest.fixture
def run_ctx() -> RunContext:
    return RunContext()


@pytest.fixture
def units(destination_store, writer, resolver, run_ctx) -> UnitRunner:
    return UnitRunner(destination_store, writer, resolver, run_ctx)


# =============================================================================
# Legacy data builders
# =============================================================================


def make_user(user_id: uuid.UUID | str, email: str, **overrides) -> LegacyUser:
    """Legacy user with sensible defaults."""
    values = {
        "id": str(user_id),
        "email": email,
        "first_name": "Ana",
        "last_name": "Cruz",
        "admin_level": None,
        "completed_data": True,
        "created_at": SOURCE_CREATED_AT,
        "updated_at": SOURCE_CREATED_AT,
    }
    values.update(overrides)
    return LegacyUser(**values)


def legacy_dataset() -> list:
    """A small legacy database covering every phase.

    - a candidate with side tables, an extracted and a saved resume,
      assessments, an AI analysis, an application, and job matches
    - an admin (platform user)
    - a candidate unknown to the identity provider, with dependent rows
    - an agency with one member company, a job under that company, and a
      job with no company
    """
    candidate = str(CANDIDATE_ID)
    unknown = str(UNKNOWN_ID)
    return [
        make_user(CANDIDATE_ID, CANDIDATE_EMAIL, username="anacruz"),
        make_user(
            ADMIN_ID,
            ADMIN_EMAIL,
            first_name="Root",
            last_name="Admin",
            admin_level="admin",
            created_at=datetime(2024, 1, 1, tzinfo=UTC),
        ),
        make_user(
            UNKNOWN_ID,
            "ghost@example.com",
            first_name="Ghost",
            created_at=datetime(2024, 5, 1, tzinfo=UTC),
        ),
        LegacyWorkStatus(
            user_id=candidate,
            work_status="unemployed-looking-for-work",
            work_setup="Work From Home",
            current_salary=25000.0,
        ),
        LegacyPrivacySettings(user_id=candidate, last_name="public"),
        LegacyLeaderboardScore(
            user_id=candidate, overall_score=320, tier="Gold", rank_position=4
        ),
        LegacyExtractedResume(
            id=1,
            user_id=candidate,
            resume_data={"name": "Ana Cruz", "skills": ["Excel"]},
            original_filename="ana.pdf",
            created_at=SOURCE_CREATED_AT,
        ),
        LegacySavedResume(
            id=1,
            user_id=candidate,
            resume_slug=SAVED_RESUME_SLUG,
            resume_title="Ana Cruz - Customer Support",
            resume_data={"summary": "Support specialist"},
            is_public=None,
            view_count=12,
            created_at=SOURCE_CREATED_AT,
        ),
        LegacyDiscSession(
            id="disc-1",
            user_id=candidate,
            session_status="completed",
            d_score=140,
            i_score=20,
            s_score=30,
            c_score=10,
            primary_type="D",
            created_at=SOURCE_CREATED_AT,
        ),
        LegacyDiscSession(
            id="disc-ghost",
            user_id=unknown,
            session_status="completed",
            created_at=SOURCE_CREATED_AT,
        ),
        LegacyTypingSession(
            id="typing-1",
            user_id=candidate,
            session_status="completed",
            wpm=62,
            overall_accuracy=97.5,
            created_at=SOURCE_CREATED_AT,
        ),
        LegacyAiAnalysis(
            id="analysis-1",
            user_id=candidate,
            session_id="session-1",
            original_resume_id=1,
            overall_score=88.0,
            key_strengths=["communication"],
            created_at=SOURCE_CREATED_AT,
        ),
        LegacyAgency(
            id="agency-1",
            name="Acme Staffing",
            slug=AGENCY_SLUG,
            created_at=SOURCE_CREATED_AT,
        ),
        LegacyMember(
            company_id=MEMBER_ID,
            company="Globex BPO",
            agency_id="agency-1",
            created_at=SOURCE_CREATED_AT,
        ),
        LegacyJobRequest(
            id=LEGACY_JOB_ID,
            company_id=MEMBER_ID,
            job_title="Customer Support Representative",
            skills=["Excel", " Excel ", "Typing", ""],
            status="inactive",
            work_type="part-time",
            created_at=SOURCE_CREATED_AT,
        ),
        LegacyJobRequest(
            id=UNATTACHED_JOB_ID,
            company_id=None,
            job_title="Virtual Assistant",
            status="active",
            created_at=datetime(2024, 3, 2, tzinfo=UTC),
        ),
        LegacyApplication(
            id="application-1",
            user_id=candidate,
            job_id=LEGACY_JOB_ID,
            resume_slug=SAVED_RESUME_SLUG,
            status="passed",
            created_at=SOURCE_CREATED_AT,
        ),
        LegacyApplication(
            id="application-ghost",
            user_id=unknown,
            job_id=LEGACY_JOB_ID,
            status="submitted",
            created_at=SOURCE_CREATED_AT,
        ),
        LegacyJobMatch(
            user_id=candidate,
            job_id=str(LEGACY_JOB_ID),
            score=150.0,
            breakdown={"skills": 90},
            analyzed_at=SOURCE_CREATED_AT,
        ),
        LegacyJobMatch(user_id=candidate, job_id="999", score=50.0),
        LegacyJobMatch(user_id=candidate, job_id="abc", score=50.0),
    ]


async def seed_source(engine: AsyncEngine, rows: list) -> None:
    """Insert legacy rows through a separate session and commit."""
    sessions = async_sessionmaker(engine, class_=AsyncSession)
    async with sessions() as session:
        session.add_all(rows)
        await session.commit()
