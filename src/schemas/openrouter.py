"""Pydantic models for LLM flashcard output."""

from typing import List
from uuid import UUID, uuid4

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class RawCard(BaseModel):
    """One pair as emitted by the model, before normalization."""

    model_config = ConfigDict(extra="ignore")

    front: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("front", "question"),
        description="Question side",
    )
    back: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("back", "answer"),
        description="Answer side",
    )


class ProvisionalCard(BaseModel):
    """Normalized pair carrying a temporary identifier."""

    id: UUID = Field(default_factory=uuid4)
    front: str
    back: str


class GenerationResult(BaseModel):
    cards: List[ProvisionalCard]
    tokens_used: int = 0
    time_ms: int = 0
    model: str
