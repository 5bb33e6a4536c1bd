from datetime import datetime
from typing import Annotated, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, StringConstraints, model_validator

from src.schemas.api.common import CamelModel, PaginationMeta

FRONT_MAX_LENGTH = 1000
BACK_MAX_LENGTH = 2000

FrontText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=FRONT_MAX_LENGTH)]
BackText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=BACK_MAX_LENGTH)]

SORT_PATTERN = r"^(created_at|updated_at|front|next_review_date):(asc|desc)$"


class FlashcardDTO(CamelModel):
    """Serialized flashcard returned by the API."""

    id: UUID
    user_id: UUID
    generation_session_id: Optional[UUID] = None
    front: str
    back: str
    source: Literal["manual", "ai_generated"]
    ease_factor: float
    interval_days: int
    repetitions: int
    next_review_date: datetime
    last_reviewed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class CreateFlashcardRequest(CamelModel):
    front: FrontText
    back: BackText


class UpdateFlashcardRequest(CamelModel):
    front: Optional[FrontText] = None
    back: Optional[BackText] = None

    @model_validator(mode="after")
    def _at_least_one(self):
        if self.front is None and self.back is None:
            raise ValueError("At least one field (front or back) must be provided")
        return self


class ReviewRequest(CamelModel):
    quality: int = Field(..., ge=0, le=5, strict=True, description="SM-2 recall quality, 0-5")


class FlashcardsQuery(BaseModel):
    """Query parameters for listing flashcards."""

    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)
    source: Optional[Literal["ai_generated", "manual"]] = None
    sort: str = Field("created_at:desc", pattern=SORT_PATTERN, description="field:direction")


class DueCardsQuery(BaseModel):
    limit: int = Field(20, ge=1, le=100)


class FlashcardsListResponse(CamelModel):
    data: List[FlashcardDTO]
    pagination: PaginationMeta


class DueCardDTO(CamelModel):
    id: UUID
    front: str
    back: str
    ease_factor: float
    interval_days: int
    repetitions: int
    next_review_date: datetime
    last_reviewed_at: Optional[datetime] = None


class DueCardsResponse(CamelModel):
    data: List[DueCardDTO]
    count: int
