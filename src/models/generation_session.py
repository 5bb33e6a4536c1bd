import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from src.db.interfaces.postgresql import Base


class GenerationStatus(str, enum.Enum):
    SUCCESS = "success"
    FAILED = "failed"
    PARTIAL = "partial"


class GenerationSession(Base):
    """Audit record of one AI generation attempt.

    Append-only apart from accepted_count/rejected_count, which the
    acceptance workflow sets exactly once.
    """

    __tablename__ = "generation_sessions"

    __table_args__ = (
        Index("ix_generation_sessions_user_created", "user_id", "created_at"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    input_text = Column(Text, nullable=False)

    generated_count = Column(Integer, nullable=False, default=0)
    accepted_count = Column(Integer, nullable=False, default=0)
    rejected_count = Column(Integer, nullable=False, default=0)

    status = Column(String(16), nullable=False)
    error_message = Column(Text, nullable=True)

    generation_time_ms = Column(Integer, nullable=True)
    tokens_used = Column(Integer, nullable=True)
    model_used = Column(String(200), nullable=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
