import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, Float, ForeignKey, Index, Integer, String, Text, Uuid
from src.db.interfaces.postgresql import Base

DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3


class FlashcardSource(str, enum.Enum):
    MANUAL = "manual"
    AI_GENERATED = "ai_generated"


class Flashcard(Base):
    __tablename__ = "flashcards"

    __table_args__ = (
        CheckConstraint("ease_factor >= 1.3", name="ck_flashcards_ease_factor_min"),
        CheckConstraint("interval_days >= 0", name="ck_flashcards_interval_days_min"),
        CheckConstraint("repetitions >= 0", name="ck_flashcards_repetitions_min"),
        Index("ix_flashcards_user_next_review", "user_id", "next_review_date"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    generation_session_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("generation_sessions.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    front = Column(String(1000), nullable=False)
    back = Column(Text, nullable=False)
    source = Column(String(16), nullable=False, default=FlashcardSource.MANUAL.value)

    # SM-2 scheduling state
    ease_factor = Column(Float, nullable=False, default=DEFAULT_EASE_FACTOR)
    interval_days = Column(Integer, nullable=False, default=0)
    repetitions = Column(Integer, nullable=False, default=0)
    next_review_date = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    last_reviewed_at = Column(DateTime(timezone=True), nullable=True)
    # Applied reviews; also the compare-and-set token for review updates
    review_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(
        timezone.utc), onupdate=lambda: datetime.now(timezone.utc), nullable=False)
