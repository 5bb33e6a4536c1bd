from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import case, func, select, update
from sqlalchemy.orm import Session

from src.models.flashcard import Flashcard
from src.models.generation_session import GenerationSession, GenerationStatus
from src.models.profile import Profile


class ProfilesRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_by_user_id(self, user_id: UUID) -> Optional[Profile]:
        stmt = (
            select(Profile)
            .where(Profile.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return self.session.scalar(stmt)

    def update_display_name(self, user_id: UUID, display_name: Optional[str]) -> Optional[Profile]:
        profile = self.get_by_user_id(user_id)
        if profile is None:
            return None
        profile.display_name = display_name
        profile.updated_at = datetime.now(timezone.utc)
        self.session.commit()
        self.session.refresh(profile)
        return profile

    def record_generation(self, user_id: UUID, today: date) -> bool:
        """Advance the daily counter in a single statement.

        Same-day generations increment the count; a new day resets it to 1,
        the SQL form of ``next_counter``.
        """
        stmt = (
            update(Profile)
            .where(Profile.user_id == user_id)
            .values(
                daily_generation_count=case(
                    (Profile.last_generation_date == today, Profile.daily_generation_count + 1),
                    else_=1,
                ),
                last_generation_date=today,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        self.session.commit()
        return result.rowcount == 1

    def get_stats(self, user_id: UUID, now: Optional[datetime] = None) -> Optional[dict]:
        """Aggregate per-user statistics."""
        profile = self.get_by_user_id(user_id)
        if profile is None:
            return None

        now = now or datetime.now(timezone.utc)
        end_of_day = datetime.combine(
            now.astimezone(timezone.utc).date() + timedelta(days=1), time.min, tzinfo=timezone.utc
        )

        card_row = self.session.execute(
            select(
                func.count(case((Flashcard.next_review_date < end_of_day, 1))),
                func.coalesce(func.sum(Flashcard.review_count), 0),
            ).where(Flashcard.user_id == user_id)
        ).one()

        session_row = self.session.execute(
            select(
                func.count(GenerationSession.id),
                func.coalesce(func.sum(GenerationSession.accepted_count), 0),
                func.coalesce(
                    func.sum(
                        case(
                            (GenerationSession.status == GenerationStatus.SUCCESS.value,
                             GenerationSession.generated_count),
                            else_=0,
                        )
                    ),
                    0,
                ),
                func.coalesce(
                    func.sum(
                        case(
                            (GenerationSession.status == GenerationStatus.SUCCESS.value,
                             GenerationSession.accepted_count),
                            else_=0,
                        )
                    ),
                    0,
                ),
            ).where(GenerationSession.user_id == user_id)
        ).one()

        cards_due_today, total_reviews = card_row
        total_sessions, total_accepted, success_generated, success_accepted = session_row

        return {
            "total_cards_created": profile.total_cards_created,
            "total_cards_generated_by_ai": profile.total_cards_generated_by_ai,
            "cards_due_today": int(cards_due_today or 0),
            "total_reviews_completed": int(total_reviews or 0),
            "total_generation_sessions": int(total_sessions or 0),
            "total_accepted_cards": int(total_accepted or 0),
            "average_acceptance_rate": (
                round(success_accepted / success_generated, 4) if success_generated else 0.0
            ),
            "daily_generation_count": profile.daily_generation_count,
            "last_generation_date": profile.last_generation_date,
        }
