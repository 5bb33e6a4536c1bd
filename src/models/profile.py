import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Uuid
from src.db.interfaces.postgresql import Base


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    display_name = Column(String(100), nullable=True)

    # Lifetime counters (never decremented)
    total_cards_created = Column(Integer, default=0, nullable=False)
    total_cards_generated_by_ai = Column(Integer, default=0, nullable=False)

    # Daily AI generation counter; only meaningful together with last_generation_date
    daily_generation_count = Column(Integer, default=0, nullable=False)
    last_generation_date = Column(Date, nullable=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(
        timezone.utc), onupdate=lambda: datetime.now(timezone.utc), nullable=False)
