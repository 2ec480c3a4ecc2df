"""Assessment phases: DISC and typing sessions (append-only)."""

from abc import abstractmethod
from typing import Any

from migrator.core.errors import SkipRecord
from migrator.models.legacy import LegacyDiscSession, LegacyTypingSession
from migrator.services.idempotent_writer import EntityKind
from migrator.services.phases.base import (
    Phase,
    UnitRunner,
    json_or,
    timestamp_or_now,
    updated_or_created,
)
from migrator.services.vocabulary import (
    VocabularyCategory,
    bound_int_score,
    bound_score,
    translate,
)

DISC_TOTAL_QUESTIONS = 30
DISC_CULTURAL_ALIGNMENT = 95
DEFAULT_TYPING_DIFFICULTY = "rockstar"


def _or_default(value: Any, default: Any) -> Any:
    """Legacy falsy-means-unset semantics: 0 and None both take the default."""
    return value if value else default


def build_disc_fields(session: LegacyDiscSession) -> dict[str, Any]:
    """Destination DISC row (without candidate_id) from a legacy session."""
    return {
        "session_status": translate(
            VocabularyCategory.SESSION_STATUS, session.session_status
        ),
        "started_at": session.started_at,
        "finished_at": session.finished_at,
        "duration_seconds": session.duration_seconds,
        "total_questions": _or_default(session.total_questions, DISC_TOTAL_QUESTIONS),
        "d_score": bound_int_score(session.d_score, 0, 100),
        "i_score": bound_int_score(session.i_score, 0, 100),
        "s_score": bound_int_score(session.s_score, 0, 100),
        "c_score": bound_int_score(session.c_score, 0, 100),
        "primary_type": session.primary_type,
        "secondary_type": session.secondary_type or None,
        "confidence_score": bound_int_score(session.confidence_score, 0, 100) or 0,
        "consistency_index": bound_score(session.consistency_index, 0, 100),
        "cultural_alignment": bound_int_score(session.cultural_alignment, 0, 100)
        or DISC_CULTURAL_ALIGNMENT,
        "authenticity_score": None,
        "ai_assessment": json_or(session.ai_assessment, {}),
        "ai_bpo_roles": json_or(session.ai_bpo_roles, []),
        "core_responses": json_or(session.core_responses, []),
        "personalized_responses": json_or(session.personalized_responses, []),
        "response_patterns": json_or(session.response_patterns, {}),
        "user_position": session.user_position or None,
        "user_location": session.user_location or None,
        "user_experience": session.user_experience or None,
        "xp_earned": 0,
        "created_at": timestamp_or_now(session.created_at),
        "updated_at": updated_or_created(session),
    }


def build_typing_fields(session: LegacyTypingSession) -> dict[str, Any]:
    """Destination typing row (without candidate_id) from a legacy session."""
    return {
        "session_status": translate(
            VocabularyCategory.SESSION_STATUS, session.session_status
        ),
        "difficulty_level": session.difficulty_level or DEFAULT_TYPING_DIFFICULTY,
        "elapsed_time": bound_score(session.elapsed_time, 0, float("inf")),
        "score": bound_int_score(session.score, 0, 2**31 - 1),
        "wpm": bound_int_score(session.wpm, 0, 1000),
        "overall_accuracy": bound_score(session.overall_accuracy, 0, 100),
        "longest_streak": bound_int_score(session.longest_streak, 0, 2**31 - 1),
        "correct_words": bound_int_score(session.correct_words, 0, 2**31 - 1),
        "wrong_words": bound_int_score(session.wrong_words, 0, 2**31 - 1),
        "words_correct": json_or(session.words_correct, []),
        "words_incorrect": json_or(session.words_incorrect, []),
        "ai_analysis": json_or(session.ai_analysis, {}),
        "vocabulary_strengths": [],
        "vocabulary_weaknesses": [],
        "generated_story": None,
        "created_at": timestamp_or_now(session.created_at),
        "updated_at": updated_or_created(session),
    }


class _AssessmentPhase(Phase):
    """Insert one destination row per legacy session; never update."""

    @abstractmethod
    def build_fields(self, session: Any) -> dict[str, Any]:
        """Destination row fields (without candidate_id) for one session."""
        ...

    async def migrate(self, record: Any, units: UnitRunner) -> None:
        session = record

        async def write_assessment() -> bool:
            candidate_id = await units.resolver.resolve_candidate(session.user_id)
            if candidate_id is None:
                raise SkipRecord(
                    f"session {session.id}: candidate {session.user_id} not migrated"
                )
            result = await units.writer.insert_if_absent(
                self.entity_kind,
                {"source_session_id": session.id},
                {"candidate_id": candidate_id, **self.build_fields(session)},
            )
            return result.created

        await units.run(self.entity_kind, session.id, write_assessment)


class DiscAssessmentsPhase(_AssessmentPhase):
    name = "disc_assessments"
    entity_kind = EntityKind.DISC_ASSESSMENT
    source_model = LegacyDiscSession

    def build_fields(self, session: LegacyDiscSession) -> dict[str, Any]:
        return build_disc_fields(session)


class TypingAssessmentsPhase(_AssessmentPhase):
    name = "typing_assessments"
    entity_kind = EntityKind.TYPING_ASSESSMENT
    source_model = LegacyTypingSession

    def build_fields(self, session: LegacyTypingSession) -> dict[str, Any]:
        return build_typing_fields(session)
