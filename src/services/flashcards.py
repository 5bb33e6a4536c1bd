import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from src.exceptions import ConflictError, ForbiddenError, NotFoundError, PersistenceError
from src.models.flashcard import Flashcard
from src.repositories.flashcards import FlashcardsRepository
from src.services.scheduling import SchedulingState, schedule_review

logger = logging.getLogger(__name__)

MAX_REVIEW_ATTEMPTS = 3


class FlashcardService:
    """Flashcard CRUD, due selection and review scheduling for one user."""

    def __init__(self, repo: FlashcardsRepository, max_review_attempts: int = MAX_REVIEW_ATTEMPTS):
        self.repo = repo
        self.max_review_attempts = max_review_attempts

    def _owned(self, flashcard_id: UUID, user_id: UUID) -> Flashcard:
        card = self.repo.get_by_id(flashcard_id)
        if card is None:
            raise NotFoundError("Flashcard not found")
        if card.user_id != user_id:
            raise ForbiddenError("You do not have access to this flashcard")
        return card

    def _persistence_failure(self, action: str, error: SQLAlchemyError) -> PersistenceError:
        self.repo.session.rollback()
        logger.error(f"Failed to {action}: {error}")
        return PersistenceError(f"Failed to {action}")

    def list(
        self,
        user_id: UUID,
        page: int = 1,
        limit: int = 20,
        source: Optional[str] = None,
        sort: str = "created_at:desc",
    ) -> Tuple[List[Flashcard], int]:
        try:
            return self.repo.list(user_id, page=page, limit=limit, source=source, sort=sort)
        except SQLAlchemyError as e:
            raise self._persistence_failure("list flashcards", e) from e

    def get(self, flashcard_id: UUID, user_id: UUID) -> Flashcard:
        return self._owned(flashcard_id, user_id)

    def create(self, user_id: UUID, front: str, back: str) -> Flashcard:
        try:
            card = self.repo.create(user_id, front, back)
        except SQLAlchemyError as e:
            raise self._persistence_failure("create flashcard", e) from e
        logger.info(f"Created manual flashcard {card.id} for user {user_id}")
        return card

    def update(
        self, flashcard_id: UUID, user_id: UUID, front: Optional[str] = None, back: Optional[str] = None
    ) -> Flashcard:
        """Edit content only; scheduling state is left as it is."""
        card = self._owned(flashcard_id, user_id)
        try:
            return self.repo.update_content(card, front, back)
        except SQLAlchemyError as e:
            raise self._persistence_failure("update flashcard", e) from e

    def delete(self, flashcard_id: UUID, user_id: UUID) -> None:
        self._owned(flashcard_id, user_id)
        try:
            deleted = self.repo.delete(flashcard_id)
        except SQLAlchemyError as e:
            raise self._persistence_failure("delete flashcard", e) from e
        if not deleted:
            raise NotFoundError("Flashcard not found")

    def due(self, user_id: UUID, limit: int = 20, now: Optional[datetime] = None) -> List[Flashcard]:
        try:
            return self.repo.get_due(user_id, limit, now=now)
        except SQLAlchemyError as e:
            raise self._persistence_failure("fetch due flashcards", e) from e

    def review(
        self, flashcard_id: UUID, user_id: UUID, quality: int, now: Optional[datetime] = None
    ) -> Flashcard:
        """Apply one SM-2 review.

        The update is conditional on the ``review_count`` that was read. When
        a concurrent review lands first the card is re-read and the quality is
        applied to the new state instead.

        Raises:
            NotFoundError / ForbiddenError: unknown or foreign card
            ConflictError: still losing the race after the retry budget
        """
        now = now or datetime.now(timezone.utc)

        for attempt in range(1, self.max_review_attempts + 1):
            card = self._owned(flashcard_id, user_id)
            state = SchedulingState(
                ease_factor=card.ease_factor,
                interval_days=card.interval_days,
                repetitions=card.repetitions,
            )
            outcome = schedule_review(state, quality, now)

            try:
                applied = self.repo.apply_review(card.id, user_id, card.review_count, outcome)
            except SQLAlchemyError as e:
                raise self._persistence_failure("save review", e) from e

            if applied:
                return self._owned(flashcard_id, user_id)

            logger.warning(
                f"Concurrent review on flashcard {flashcard_id} (attempt {attempt}/{self.max_review_attempts})"
            )

        raise ConflictError("Flashcard was modified by another review. Please retry.")
