import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from src.db.redis.locks import KeyedLock
from src.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    PersistenceError,
    RateLimitExceededError,
    ValidationFailed,
)
from src.models.generation_session import GenerationSession, GenerationStatus
from src.repositories.flashcards import FlashcardsRepository
from src.repositories.generation_sessions import GenerationSessionsRepository
from src.repositories.profiles import ProfilesRepository
from src.schemas.api.common import PaginationMeta
from src.schemas.api.flashcards import FlashcardDTO
from src.schemas.api.generation import (
    AcceptCardItem,
    AcceptCardsResponse,
    GeneratedCard,
    GenerateResponse,
    GenerationSessionDTO,
    GenerationSessionWithCards,
    SessionFlashcard,
    SessionsListResponse,
)
from src.services.generation.rate_limiter import (
    DEFAULT_DAILY_LIMIT,
    is_rate_limited,
    seconds_until_reset,
    today_utc,
)
from src.services.openrouter.client import OpenRouterClient
from src.services.openrouter.prompts import card_violations, validate_generated_cards

logger = logging.getLogger(__name__)

ERROR_MESSAGE_MAX_LENGTH = 1000


class GenerationService:
    """AI generation sessions: rate-limited generation and acceptance of the results."""

    def __init__(
        self,
        profiles: ProfilesRepository,
        sessions: GenerationSessionsRepository,
        flashcards: FlashcardsRepository,
        llm: OpenRouterClient,
        lock: KeyedLock,
        daily_limit: int = DEFAULT_DAILY_LIMIT,
    ):
        self.profiles = profiles
        self.sessions = sessions
        self.flashcards = flashcards
        self.llm = llm
        self.lock = lock
        self.daily_limit = daily_limit

    async def generate(
        self,
        user_id: UUID,
        input_text: str,
        model: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> GenerateResponse:
        """Generate provisional flashcards and record the session.

        The check against the daily cap and the counter update run under one
        per-user lock. Rate-limited requests leave no session behind; any other
        failure after the check is recorded as a ``failed`` session.

        Raises:
            RateLimitExceededError: daily cap reached
            LLMException: upstream AI failure (503)
            GenerationError: unusable AI output (500)
        """
        now = now or datetime.now(timezone.utc)
        model = model or self.llm.default_model

        async with self.lock.hold("generate", str(user_id)):
            profile = self.profiles.get_by_user_id(user_id)
            if profile is None:
                raise NotFoundError("User profile not found")

            today = today_utc(now)
            if is_rate_limited(
                profile.daily_generation_count, profile.last_generation_date, today, self.daily_limit
            ):
                logger.info(f"Generation rate limit reached for user {user_id}")
                raise RateLimitExceededError(self.daily_limit, seconds_until_reset(now))

            start = time.monotonic()
            try:
                result = await asyncio.to_thread(self.llm.generate_flashcards, input_text, model)
                validate_generated_cards(result.cards)
            except Exception as e:
                elapsed_ms = int((time.monotonic() - start) * 1000)
                logger.error(f"Generation failed for user {user_id} after {elapsed_ms}ms: {e}")
                self._record_failed_session(user_id, input_text, model, str(e), elapsed_ms)
                raise

            try:
                session = self.sessions.create(
                    user_id=user_id,
                    input_text=input_text,
                    generated_count=len(result.cards),
                    accepted_count=0,
                    rejected_count=0,
                    status=GenerationStatus.SUCCESS.value,
                    generation_time_ms=result.time_ms,
                    tokens_used=result.tokens_used,
                    model_used=result.model,
                )
            except SQLAlchemyError as e:
                self.sessions.session.rollback()
                logger.error(f"Failed to save generation session for user {user_id}: {e}")
                self._record_failed_session(user_id, input_text, model, str(e), result.time_ms)
                raise PersistenceError("Failed to save generation session") from e

            try:
                if not self.profiles.record_generation(user_id, today):
                    logger.error(f"Generation counter not updated for user {user_id}: profile missing")
            except SQLAlchemyError as e:
                self.profiles.session.rollback()
                logger.error(f"Failed to update generation counter for user {user_id}: {e}")

        logger.info(
            f"Generation session {session.id}: {len(result.cards)} cards, "
            f"{result.tokens_used} tokens, {result.time_ms}ms"
        )
        return GenerateResponse(
            session_id=session.id,
            status=session.status,
            generated_cards=[GeneratedCard(id=c.id, front=c.front, back=c.back) for c in result.cards],
            generated_count=session.generated_count,
            generation_time_ms=result.time_ms,
            tokens_used=result.tokens_used,
        )

    def _record_failed_session(
        self, user_id: UUID, input_text: str, model: str, error: str, elapsed_ms: int
    ) -> None:
        try:
            self.sessions.create(
                user_id=user_id,
                input_text=input_text,
                generated_count=0,
                accepted_count=0,
                rejected_count=0,
                status=GenerationStatus.FAILED.value,
                error_message=error[:ERROR_MESSAGE_MAX_LENGTH],
                generation_time_ms=elapsed_ms,
                tokens_used=0,
                model_used=model,
            )
        except SQLAlchemyError as e:
            self.sessions.session.rollback()
            logger.error(f"Failed to record failed generation session for user {user_id}: {e}")

    def _owned_session(self, session_id: UUID, user_id: UUID) -> GenerationSession:
        session = self.sessions.get_by_id(session_id)
        if session is None:
            raise NotFoundError("Generation session not found")
        if session.user_id != user_id:
            raise ForbiddenError("You do not have access to this generation session")
        return session

    async def accept(
        self, user_id: UUID, session_id: UUID, cards: List[AcceptCardItem]
    ) -> AcceptCardsResponse:
        """Persist the kept cards of a successful session, exactly once."""
        async with self.lock.hold("accept", str(session_id)):
            session = self._owned_session(session_id, user_id)

            if session.status != GenerationStatus.SUCCESS.value:
                raise ConflictError("Only successful generation sessions can be accepted")
            if (
                session.accepted_count
                or session.rejected_count
                or self.flashcards.count_by_session(session.id)
            ):
                raise ConflictError("Cards for this generation session were already accepted")

            if len(cards) > session.generated_count:
                raise ValidationFailed(
                    f"Cannot accept {len(cards)} cards; only {session.generated_count} were generated",
                    details={"accepted": len(cards), "generated": session.generated_count},
                )

            for index, card in enumerate(cards):
                problems = card_violations(card.front, card.back)
                if problems:
                    raise ValidationFailed(
                        f"Card {index}: {problems[0]}", details={"index": index, "errors": problems}
                    )

            try:
                created = self.flashcards.create_many(
                    user_id, session.id, [(c.front, c.back) for c in cards]
                )
            except SQLAlchemyError as e:
                logger.error(f"Failed to save accepted cards for session {session.id}: {e}")
                raise PersistenceError("Failed to save accepted flashcards") from e

            accepted = len(created)
            rejected = session.generated_count - accepted

            try:
                if not self.sessions.set_acceptance_counts(session.id, accepted, rejected):
                    logger.error(f"Acceptance counts for session {session.id} were not recorded")
            except SQLAlchemyError as e:
                self.sessions.session.rollback()
                logger.error(f"Failed to record acceptance counts for session {session.id}: {e}")

        logger.info(f"Session {session.id}: accepted {accepted}, rejected {rejected}")
        return AcceptCardsResponse(
            session_id=session.id,
            accepted_count=accepted,
            rejected_count=rejected,
            flashcards=[FlashcardDTO.model_validate(card) for card in created],
        )

    def list_sessions(
        self, user_id: UUID, page: int = 1, limit: int = 20, status: Optional[str] = None
    ) -> SessionsListResponse:
        try:
            items, total = self.sessions.list(user_id, page=page, limit=limit, status=status)
        except SQLAlchemyError as e:
            logger.error(f"Failed to list generation sessions for user {user_id}: {e}")
            raise PersistenceError("Failed to fetch generation sessions") from e

        return SessionsListResponse(
            data=[GenerationSessionDTO.model_validate(s) for s in items],
            pagination=PaginationMeta.build(page, limit, total),
        )

    def get_session(self, user_id: UUID, session_id: UUID) -> GenerationSessionWithCards:
        session = self._owned_session(session_id, user_id)
        cards = self.flashcards.list_by_session(session.id)

        payload = GenerationSessionDTO.model_validate(session).model_dump()
        return GenerationSessionWithCards(
            **payload,
            flashcards=[SessionFlashcard.model_validate(c) for c in cards],
        )
