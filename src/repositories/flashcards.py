from datetime import datetime, timezone
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from src.models.flashcard import Flashcard, FlashcardSource
from src.models.profile import Profile
from src.services.scheduling.sm2 import ReviewOutcome

SORTABLE_COLUMNS = {
    "created_at": Flashcard.created_at,
    "updated_at": Flashcard.updated_at,
    "front": Flashcard.front,
    "next_review_date": Flashcard.next_review_date,
}


class FlashcardsRepository:
    """Data access layer for flashcards."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, flashcard_id: UUID) -> Optional[Flashcard]:
        stmt = (
            select(Flashcard)
            .where(Flashcard.id == flashcard_id)
            .execution_options(populate_existing=True)
        )
        return self.session.scalar(stmt)

    def list(
        self,
        user_id: UUID,
        page: int = 1,
        limit: int = 20,
        source: Optional[str] = None,
        sort: str = "created_at:desc",
    ) -> Tuple[List[Flashcard], int]:
        stmt = select(Flashcard).where(Flashcard.user_id == user_id)
        if source:
            stmt = stmt.where(Flashcard.source == source)

        total = self.session.scalar(
            select(func.count()).select_from(stmt.subquery())
        ) or 0

        field, _, direction = sort.partition(":")
        column = SORTABLE_COLUMNS[field]
        order = column.asc() if direction == "asc" else column.desc()
        stmt = stmt.order_by(order, Flashcard.id).limit(limit).offset((page - 1) * limit)

        return list(self.session.scalars(stmt)), total

    def get_due(self, user_id: UUID, limit: int, now: Optional[datetime] = None) -> List[Flashcard]:
        """Cards whose next review is at or before ``now``, most overdue first."""
        now = now or datetime.now(timezone.utc)
        stmt = (
            select(Flashcard)
            .where(
                Flashcard.user_id == user_id,
                Flashcard.next_review_date <= now,
            )
            .order_by(Flashcard.next_review_date.asc(), Flashcard.id)
            .limit(limit)
        )
        return list(self.session.scalars(stmt))

    def list_by_session(self, generation_session_id: UUID) -> List[Flashcard]:
        stmt = (
            select(Flashcard)
            .where(Flashcard.generation_session_id == generation_session_id)
            .order_by(Flashcard.created_at.asc(), Flashcard.id)
        )
        return list(self.session.scalars(stmt))

    def count_by_session(self, generation_session_id: UUID) -> int:
        stmt = select(func.count(Flashcard.id)).where(
            Flashcard.generation_session_id == generation_session_id
        )
        return self.session.scalar(stmt) or 0

    def create(self, user_id: UUID, front: str, back: str) -> Flashcard:
        """Insert a manual card with default scheduling."""
        card = Flashcard(
            user_id=user_id,
            front=front,
            back=back,
            source=FlashcardSource.MANUAL.value,
            generation_session_id=None,
        )
        self.session.add(card)
        self._bump_profile_counters(user_id, created=1, ai_generated=0)
        self.session.commit()
        self.session.refresh(card)
        return card

    def create_many(self, user_id: UUID, generation_session_id: UUID, pairs: List[Tuple[str, str]]) -> List[Flashcard]:
        """Insert accepted AI cards as one transaction; nothing is kept on failure."""
        if not pairs:
            return []

        now = datetime.now(timezone.utc)
        cards = [
            Flashcard(
                user_id=user_id,
                generation_session_id=generation_session_id,
                front=front,
                back=back,
                source=FlashcardSource.AI_GENERATED.value,
                ease_factor=2.5,
                interval_days=0,
                repetitions=0,
                next_review_date=now,
            )
            for front, back in pairs
        ]
        try:
            self.session.add_all(cards)
            self.session.flush()
            self._bump_profile_counters(user_id, created=len(cards), ai_generated=len(cards))
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        for card in cards:
            self.session.refresh(card)
        return cards

    def update_content(self, card: Flashcard, front: Optional[str], back: Optional[str]) -> Flashcard:
        if front is not None:
            card.front = front
        if back is not None:
            card.back = back
        card.updated_at = datetime.now(timezone.utc)
        self.session.commit()
        self.session.refresh(card)
        return card

    def delete(self, flashcard_id: UUID) -> int:
        result = self.session.execute(delete(Flashcard).where(Flashcard.id == flashcard_id))
        self.session.commit()
        return result.rowcount or 0

    def apply_review(
        self,
        flashcard_id: UUID,
        user_id: UUID,
        expected_review_count: int,
        outcome: ReviewOutcome,
    ) -> bool:
        """Compare-and-set the scheduling state.

        Only applies when ``review_count`` still equals ``expected_review_count``,
        so a concurrent review cannot be silently overwritten.
        """
        stmt = (
            update(Flashcard)
            .where(
                Flashcard.id == flashcard_id,
                Flashcard.user_id == user_id,
                Flashcard.review_count == expected_review_count,
            )
            .values(
                ease_factor=outcome.ease_factor,
                interval_days=outcome.interval_days,
                repetitions=outcome.repetitions,
                next_review_date=outcome.next_review_date,
                last_reviewed_at=outcome.last_reviewed_at,
                review_count=Flashcard.review_count + 1,
                updated_at=outcome.last_reviewed_at,
            )
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        self.session.commit()
        return result.rowcount == 1

    def _bump_profile_counters(self, user_id: UUID, created: int, ai_generated: int) -> None:
        self.session.execute(
            update(Profile)
            .where(Profile.user_id == user_id)
            .values(
                total_cards_created=Profile.total_cards_created + created,
                total_cards_generated_by_ai=Profile.total_cards_generated_by_ai + ai_generated,
            )
            .execution_options(synchronize_session=False)
        )
