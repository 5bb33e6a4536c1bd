from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import Field, field_validator

from src.schemas.api.common import CamelModel


class ProfileResponse(CamelModel):
    id: UUID
    user_id: UUID
    display_name: Optional[str] = None
    total_cards_created: int
    total_cards_generated_by_ai: int = Field(..., alias="totalCardsGeneratedByAI")
    daily_generation_count: int
    last_generation_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime


class UpdateProfileRequest(CamelModel):
    """Only the display name is user-editable."""

    display_name: Optional[str] = Field(None, max_length=100)

    @field_validator("display_name")
    @classmethod
    def _not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("Display name cannot be empty or whitespace only")
        return v


class UserStatsResponse(CamelModel):
    total_cards_created: int = 0
    total_cards_generated_by_ai: int = Field(0, alias="totalCardsGeneratedByAI")
    cards_due_today: int = 0
    total_reviews_completed: int = 0
    total_generation_sessions: int = 0
    total_accepted_cards: int = 0
    average_acceptance_rate: float = Field(
        0.0, description="Accepted / generated across successful sessions (0..1)"
    )
    daily_generation_count: int = 0
    last_generation_date: Optional[date] = None
