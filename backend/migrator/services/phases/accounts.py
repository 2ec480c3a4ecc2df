"""Accounts phase: legacy users -> candidates or platform users (+ profiles)."""

from collections.abc import Sequence
from typing import Any

from sqlalchemy.orm.interfaces import LoaderOption

from migrator.core.errors import SkipRecord
from migrator.models.legacy import LegacyUser
from migrator.repositories.source_store import eager
from migrator.services.idempotent_writer import EntityKind
from migrator.services.phases.base import (
    Phase,
    UnitRunner,
    timestamp_or_now,
    updated_or_created,
)
from migrator.services.vocabulary import (
    VocabularyCategory,
    is_platform_user,
    translate,
)

_PUBLIC = "public"
_ONLY_ME = "only-me"

# Field -> visibility used when the legacy user has a privacy row with a gap
PRIVACY_DEFAULTS: dict[str, str] = {
    "username": _PUBLIC,
    "first_name": _PUBLIC,
    "last_name": _ONLY_ME,
    "location": _PUBLIC,
    "job_title": _PUBLIC,
    "birthday": _ONLY_ME,
    "age": _ONLY_ME,
    "gender": _ONLY_ME,
    "resume_score": _PUBLIC,
    "key_strengths": _ONLY_ME,
}

DEFAULT_TIER = "Bronze"


def build_privacy_settings(user: LegacyUser) -> dict[str, str]:
    """Privacy document for a profile; empty when the user never set any."""
    privacy = user.privacy_settings
    if privacy is None:
        return {}
    return {
        field: getattr(privacy, field) or default
        for field, default in PRIVACY_DEFAULTS.items()
    }


def build_gamification(user: LegacyUser) -> dict[str, Any]:
    """Gamification document from the leaderboard side-table."""
    score = user.leaderboard_score
    if score is None:
        return {"total_xp": 0, "tier": DEFAULT_TIER, "badges": [], "rank_position": 0}
    return {
        "total_xp": score.overall_score or 0,
        "tier": score.tier or DEFAULT_TIER,
        "badges": [],
        "rank_position": score.rank_position or 0,
    }


def build_profile_fields(user: LegacyUser) -> dict[str, Any]:
    """Denormalize the user's side-tables into one profile row."""
    work = user.work_status
    fields: dict[str, Any] = {
        "bio": user.bio or None,
        "position": user.position or None,
        "birthday": user.birthday,
        "gender": user.gender or None,
        "gender_custom": user.gender_custom or None,
        "location": user.location or None,
        "location_place_id": user.location_place_id or None,
        "location_lat": user.location_lat,
        "location_lng": user.location_lng,
        "location_city": user.location_city or None,
        "location_province": user.location_province or None,
        "location_country": user.location_country or None,
        "location_barangay": user.location_barangay or None,
        "location_region": user.location_region or None,
        "work_status": None,
        "current_employer": None,
        "current_position": None,
        "current_salary": None,
        "expected_salary_min": None,
        "expected_salary_max": None,
        "notice_period_days": None,
        "preferred_shift": None,
        "preferred_work_setup": None,
        "privacy_settings": build_privacy_settings(user),
        "gamification": build_gamification(user),
        "profile_completed": bool(user.completed_data),
        "profile_completion_percentage": 100 if user.completed_data else 0,
        "created_at": timestamp_or_now(user.created_at),
        "updated_at": updated_or_created(user),
    }
    if work is not None:
        fields.update(
            work_status=translate(
                VocabularyCategory.WORK_STATUS,
                work.work_status_new or work.work_status,
            ),
            current_employer=work.current_employer or None,
            current_position=work.current_position or None,
            current_salary=work.current_salary,
            expected_salary_min=work.minimum_salary_range,
            expected_salary_max=work.maximum_salary_range,
            notice_period_days=work.notice_period_days,
            preferred_shift=work.preferred_shift or None,
            preferred_work_setup=translate(
                VocabularyCategory.WORK_SETUP, work.work_setup
            ),
        )
    return fields


class AccountsPhase(Phase):
    """Split legacy users by admin level and write their profiles inline."""

    name = "accounts"
    entity_kind = EntityKind.CANDIDATE
    source_model = LegacyUser

    def loader_options(self) -> Sequence[LoaderOption]:
        return (
            eager(LegacyUser.work_status),
            eager(LegacyUser.privacy_settings),
            eager(LegacyUser.leaderboard_score),
        )

    async def migrate(self, record: LegacyUser, units: UnitRunner) -> None:
        user = record
        platform = is_platform_user(user.admin_level)
        kind = EntityKind.PLATFORM_USER if platform else EntityKind.CANDIDATE

        async def write_account() -> None:
            account_id = await units.resolver.resolve_account(user.id)
            if account_id is None:
                raise SkipRecord(
                    f"user {user.email} ({user.id}) not found in identity provider"
                )
            common = {
                "email": user.email,
                "first_name": user.first_name,
                "last_name": user.last_name,
                "phone": user.phone,
                "avatar_url": user.avatar_url,
                "created_at": timestamp_or_now(user.created_at),
                "updated_at": updated_or_created(user),
            }
            if platform:
                await units.writer.upsert(
                    kind,
                    {"id": account_id},
                    {
                        **common,
                        "role": translate(
                            VocabularyCategory.ACCOUNT_ROLE, user.admin_level
                        ),
                        "is_active": True,
                    },
                    create_only=("role", "is_active", "created_at"),
                )
            else:
                await units.writer.upsert(
                    kind,
                    {"id": account_id},
                    {
                        **common,
                        "username": user.username,
                        "slug": user.slug,
                        "is_active": True,
                        "email_verified": False,
                    },
                    create_only=("is_active", "email_verified", "created_at"),
                )

        written = await units.run(kind, user.id, write_account)
        if not written or platform:
            return

        async def write_profile() -> None:
            candidate_id = await units.resolver.resolve_candidate(user.id)
            if candidate_id is None:
                raise SkipRecord(f"candidate {user.id} missing for profile")
            await units.writer.upsert(
                EntityKind.PROFILE,
                {"candidate_id": candidate_id},
                build_profile_fields(user),
                create_only=("created_at",),
            )

        await units.run(EntityKind.PROFILE, user.id, write_profile)
