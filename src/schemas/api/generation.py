from datetime import datetime
from typing import Annotated, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from src.schemas.api.common import CamelModel, PaginationMeta
from src.schemas.api.flashcards import BackText, FlashcardDTO, FrontText

INPUT_MIN_LENGTH = 1000
INPUT_MAX_LENGTH = 10000

InputText = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=INPUT_MIN_LENGTH, max_length=INPUT_MAX_LENGTH)
]


class GenerateRequest(CamelModel):
    """Request model for AI flashcard generation."""

    input_text: InputText = Field(..., description="Source text, 1000-10000 characters")
    model: Optional[str] = Field(None, min_length=1, max_length=200, description="Override the default LLM model")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "inputText": "Photosynthesis is the process by which green plants ...",
                "model": "anthropic/claude-3-5-sonnet",
            }
        }
    )


class GeneratedCard(CamelModel):
    """Provisional question/answer pair; ``id`` is temporary, not a flashcard key."""

    id: UUID
    front: str
    back: str


class GenerateResponse(CamelModel):
    session_id: UUID
    status: Literal["success", "failed", "partial"]
    generated_cards: List[GeneratedCard]
    generated_count: int
    generation_time_ms: int
    tokens_used: int


class AcceptCardItem(CamelModel):
    id: UUID
    front: FrontText
    back: BackText


class AcceptCardsRequest(CamelModel):
    cards: List[AcceptCardItem] = Field(
        ..., description="Cards to keep, possibly edited. Empty list rejects all."
    )


class AcceptCardsResponse(CamelModel):
    session_id: UUID
    accepted_count: int
    rejected_count: int
    flashcards: List[FlashcardDTO]


class GenerationSessionDTO(CamelModel):
    id: UUID
    user_id: UUID
    input_text: str
    generated_count: int
    accepted_count: int
    rejected_count: int
    status: Literal["success", "failed", "partial"]
    error_message: Optional[str] = None
    generation_time_ms: Optional[int] = None
    tokens_used: Optional[int] = None
    model_used: Optional[str] = None
    created_at: datetime


class SessionFlashcard(CamelModel):
    id: UUID
    front: str
    back: str


class GenerationSessionWithCards(GenerationSessionDTO):
    flashcards: List[SessionFlashcard] = Field(default_factory=list)


class SessionsQuery(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)
    status: Optional[Literal["success", "failed", "partial"]] = None


class SessionsListResponse(CamelModel):
    data: List[GenerationSessionDTO]
    pagination: PaginationMeta
