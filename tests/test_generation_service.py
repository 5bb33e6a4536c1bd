"""
Generation and acceptance workflows against SQLite, with the LLM mocked out.
"""

import uuid
from datetime import date, datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from src.db.redis.locks import KeyedLock
from src.exceptions import (
    ConflictError,
    ForbiddenError,
    GenerationError,
    LLMTimeoutError,
    NotFoundError,
    PersistenceError,
    RateLimitExceededError,
    ValidationFailed,
)
from src.models import Flashcard, GenerationSession
from src.repositories.flashcards import FlashcardsRepository
from src.repositories.generation_sessions import GenerationSessionsRepository
from src.repositories.profiles import ProfilesRepository
from src.schemas.api.generation import AcceptCardItem
from src.services.generation import GenerationService
from tests.fakes import SOURCE_TEXT, make_cards, make_result

NOW = datetime(2024, 3, 1, 15, 0, tzinfo=timezone.utc)

pytestmark = pytest.mark.asyncio


@pytest.fixture
def service(db_session, fake_llm, fake_redis):
    return GenerationService(
        profiles=ProfilesRepository(db_session),
        sessions=GenerationSessionsRepository(db_session),
        flashcards=FlashcardsRepository(db_session),
        llm=fake_llm,
        lock=KeyedLock(fake_redis),
        daily_limit=2,
    )


def session_count(db_session) -> int:
    return db_session.scalar(select(func.count(GenerationSession.id)))


def as_items(cards):
    return [AcceptCardItem(id=c.id, front=c.front, back=c.back) for c in cards]


class TestGenerate:
    async def test_success_records_session_and_counter(self, service, user, db_session, fake_llm):
        response = await service.generate(user.id, SOURCE_TEXT, now=NOW)

        assert response.status == "success"
        assert response.generated_count == 8
        assert len(response.generated_cards) == 8
        assert response.tokens_used == 1234

        session = service.sessions.get_by_id(response.session_id)
        assert session.generated_count == 8
        assert session.model_used == fake_llm.default_model
        assert (session.accepted_count, session.rejected_count) == (0, 0)

        profile = service.profiles.get_by_user_id(user.id)
        assert profile.daily_generation_count == 1
        assert profile.last_generation_date == NOW.date()

    async def test_generated_cards_are_not_persisted(self, service, user, db_session):
        await service.generate(user.id, SOURCE_TEXT, now=NOW)
        assert db_session.scalar(select(func.count(Flashcard.id))) == 0

    async def test_third_generation_same_day_is_rejected(self, service, user, db_session, fake_llm):
        await service.generate(user.id, SOURCE_TEXT, now=NOW)
        await service.generate(user.id, SOURCE_TEXT, now=NOW + timedelta(hours=1))

        with pytest.raises(RateLimitExceededError) as exc_info:
            await service.generate(user.id, SOURCE_TEXT, now=NOW + timedelta(hours=2))

        assert exc_info.value.headers["Retry-After"] == str(7 * 3600)
        assert exc_info.value.details["limit"] == 2
        assert session_count(db_session) == 2
        assert fake_llm.generate_flashcards.call_count == 2

    async def test_counter_resets_on_new_utc_day(self, service, user, db_session):
        profile = service.profiles.get_by_user_id(user.id)
        profile.daily_generation_count = 2
        profile.last_generation_date = date(2024, 2, 29)
        db_session.commit()

        await service.generate(user.id, SOURCE_TEXT, now=NOW)

        profile = service.profiles.get_by_user_id(user.id)
        assert profile.daily_generation_count == 1
        assert profile.last_generation_date == NOW.date()

    async def test_llm_failure_records_failed_session(self, service, user, db_session, fake_llm):
        fake_llm.generate_flashcards.side_effect = LLMTimeoutError("AI service timeout after 30s")

        with pytest.raises(LLMTimeoutError):
            await service.generate(user.id, SOURCE_TEXT, now=NOW)

        failed = db_session.scalars(select(GenerationSession)).one()
        assert failed.status == "failed"
        assert "timeout" in failed.error_message
        assert failed.generated_count == 0

        profile = service.profiles.get_by_user_id(user.id)
        assert profile.daily_generation_count == 0
        assert profile.last_generation_date is None

    async def test_invalid_card_fails_whole_batch(self, service, user, db_session, fake_llm):
        result = make_result(count=6)
        result.cards[3].front = "Why?"
        fake_llm.generate_flashcards.return_value = result

        with pytest.raises(GenerationError):
            await service.generate(user.id, SOURCE_TEXT, now=NOW)

        assert db_session.scalars(select(GenerationSession)).one().status == "failed"

    async def test_concurrent_generation_is_refused(self, service, user, fake_redis, fake_llm):
        fake_redis.held.add(f"lock:generate:{user.id}")

        with pytest.raises(ConflictError):
            await service.generate(user.id, SOURCE_TEXT, now=NOW)
        fake_llm.generate_flashcards.assert_not_called()

    async def test_counter_failure_still_returns_cards(self, service, user):
        with patch.object(service.profiles, "record_generation", side_effect=SQLAlchemyError("deadlock")):
            response = await service.generate(user.id, SOURCE_TEXT, now=NOW)

        assert response.status == "success"
        assert response.generated_count == 8
        assert service.sessions.get_by_id(response.session_id).status == "success"
        assert service.profiles.get_by_user_id(user.id).daily_generation_count == 0

    async def test_unsaved_success_is_recorded_as_failed(self, service, user, db_session):
        real_create = service.sessions.create
        calls = []

        def create_once_broken(**fields):
            calls.append(fields["status"])
            if len(calls) == 1:
                raise SQLAlchemyError("connection reset")
            return real_create(**fields)

        with patch.object(service.sessions, "create", side_effect=create_once_broken):
            with pytest.raises(PersistenceError):
                await service.generate(user.id, SOURCE_TEXT, now=NOW)

        assert calls == ["success", "failed"]
        failed = db_session.scalars(select(GenerationSession)).one()
        assert failed.status == "failed"
        assert "connection reset" in failed.error_message
        assert service.profiles.get_by_user_id(user.id).daily_generation_count == 0


class TestAccept:
    @pytest.fixture
    async def generated(self, service, user):
        return await service.generate(user.id, SOURCE_TEXT, now=NOW)

    async def test_accepts_subset_and_counts_rejections(self, service, user, generated):
        kept = generated.generated_cards[:5]

        response = await service.accept(user.id, generated.session_id, as_items(kept))

        assert (response.accepted_count, response.rejected_count) == (5, 3)
        assert len(response.flashcards) == 5
        assert all(card.source == "ai_generated" for card in response.flashcards)
        assert all(card.generation_session_id == generated.session_id for card in response.flashcards)
        assert all(card.repetitions == 0 and card.ease_factor == 2.5 for card in response.flashcards)

        session = service.sessions.get_by_id(generated.session_id)
        assert (session.accepted_count, session.rejected_count) == (5, 3)

        profile = service.profiles.get_by_user_id(user.id)
        assert profile.total_cards_created == 5
        assert profile.total_cards_generated_by_ai == 5

    async def test_edited_cards_are_saved_as_edited(self, service, user, generated):
        card = generated.generated_cards[0]
        item = AcceptCardItem(id=card.id, front="An edited question about plants?", back=card.back)

        response = await service.accept(user.id, generated.session_id, [item])

        assert response.flashcards[0].front == "An edited question about plants?"

    async def test_count_failure_keeps_accepted_cards(self, service, user, generated, db_session):
        kept = generated.generated_cards[:5]

        with patch.object(service.sessions, "set_acceptance_counts", side_effect=SQLAlchemyError("lock timeout")):
            response = await service.accept(user.id, generated.session_id, as_items(kept))

        assert (response.accepted_count, response.rejected_count) == (5, 3)
        assert len(response.flashcards) == 5
        assert db_session.scalar(select(func.count(Flashcard.id))) == 5
        assert {card.front for card in response.flashcards} == {card.front for card in kept}

    async def test_reject_all(self, service, user, generated):
        response = await service.accept(user.id, generated.session_id, [])
        assert (response.accepted_count, response.rejected_count) == (0, 8)

    async def test_second_acceptance_conflicts(self, service, user, generated, db_session):
        await service.accept(user.id, generated.session_id, as_items(generated.generated_cards[:2]))

        with pytest.raises(ConflictError):
            await service.accept(user.id, generated.session_id, as_items(generated.generated_cards[2:4]))
        assert db_session.scalar(select(func.count(Flashcard.id))) == 2

    async def test_more_cards_than_generated(self, service, user, generated):
        extra = as_items(generated.generated_cards) + as_items(make_cards(1))

        with pytest.raises(ValidationFailed):
            await service.accept(user.id, generated.session_id, extra)

    async def test_short_card_rejects_request(self, service, user, generated, db_session):
        item = AcceptCardItem(id=uuid.uuid4(), front="Too short", back="A perfectly fine answer")

        with pytest.raises(ValidationFailed) as exc_info:
            await service.accept(user.id, generated.session_id, [item])

        assert exc_info.value.details["index"] == 0
        assert db_session.scalar(select(func.count(Flashcard.id))) == 0

    async def test_failed_session_cannot_be_accepted(self, service, user, fake_llm):
        fake_llm.generate_flashcards.side_effect = LLMTimeoutError()
        with pytest.raises(LLMTimeoutError):
            await service.generate(user.id, SOURCE_TEXT, now=NOW)
        failed, _ = service.sessions.list(user.id)

        with pytest.raises(ConflictError):
            await service.accept(user.id, failed[0].id, [])

    async def test_other_users_session_is_forbidden(self, service, other_user, generated):
        with pytest.raises(ForbiddenError):
            await service.accept(other_user.id, generated.session_id, [])

    async def test_unknown_session(self, service, user):
        with pytest.raises(NotFoundError):
            await service.accept(user.id, uuid.uuid4(), [])


class TestSessions:
    async def test_list_newest_first_and_detail(self, service, user):
        first = await service.generate(user.id, SOURCE_TEXT, now=NOW)
        second = await service.generate(user.id, SOURCE_TEXT, now=NOW)
        await service.accept(user.id, first.session_id, as_items(first.generated_cards[:3]))

        listing = service.list_sessions(user.id, page=1, limit=10)
        assert listing.pagination.total == 2
        assert {s.id for s in listing.data} == {first.session_id, second.session_id}

        detail = service.get_session(user.id, first.session_id)
        assert detail.accepted_count == 3
        assert len(detail.flashcards) == 3

    async def test_filter_by_status(self, service, user, fake_llm):
        await service.generate(user.id, SOURCE_TEXT, now=NOW)
        fake_llm.generate_flashcards.side_effect = LLMTimeoutError()
        with pytest.raises(LLMTimeoutError):
            await service.generate(user.id, SOURCE_TEXT, now=NOW)

        failed = service.list_sessions(user.id, status="failed")
        assert [s.status for s in failed.data] == ["failed"]
