import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, Response, status

from src.dependencies import CurrentUserDep, FlashcardServiceDep
from src.schemas.api.common import PaginationMeta
from src.schemas.api.flashcards import (
    CreateFlashcardRequest,
    DueCardDTO,
    DueCardsQuery,
    DueCardsResponse,
    FlashcardDTO,
    FlashcardsListResponse,
    FlashcardsQuery,
    ReviewRequest,
    UpdateFlashcardRequest,
)

router = APIRouter(prefix="/flashcards", tags=["flashcards"])
logger = logging.getLogger(__name__)


@router.get("", response_model=FlashcardsListResponse)
def list_flashcards(
    query: Annotated[FlashcardsQuery, Query()],
    current: CurrentUserDep,
    service: FlashcardServiceDep,
):
    """Paginated flashcards of the caller, optionally filtered by source."""
    items, total = service.list(
        current.id, page=query.page, limit=query.limit, source=query.source, sort=query.sort
    )
    return FlashcardsListResponse(
        data=[FlashcardDTO.model_validate(card) for card in items],
        pagination=PaginationMeta.build(query.page, query.limit, total),
    )


@router.post("", response_model=FlashcardDTO, status_code=status.HTTP_201_CREATED)
def create_flashcard(payload: CreateFlashcardRequest, current: CurrentUserDep, service: FlashcardServiceDep):
    return service.create(current.id, payload.front, payload.back)


# Declared before /{flashcard_id} so "due" is not parsed as an id.
@router.get("/due", response_model=DueCardsResponse)
def due_flashcards(
    query: Annotated[DueCardsQuery, Query()],
    current: CurrentUserDep,
    service: FlashcardServiceDep,
):
    """Cards ready for review, most overdue first."""
    cards = service.due(current.id, limit=query.limit)
    return DueCardsResponse(data=[DueCardDTO.model_validate(card) for card in cards], count=len(cards))


@router.get("/{flashcard_id}", response_model=FlashcardDTO)
def get_flashcard(flashcard_id: UUID, current: CurrentUserDep, service: FlashcardServiceDep):
    return service.get(flashcard_id, current.id)


@router.patch("/{flashcard_id}", response_model=FlashcardDTO)
def update_flashcard(
    flashcard_id: UUID,
    payload: UpdateFlashcardRequest,
    current: CurrentUserDep,
    service: FlashcardServiceDep,
):
    return service.update(flashcard_id, current.id, front=payload.front, back=payload.back)


@router.delete("/{flashcard_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_flashcard(flashcard_id: UUID, current: CurrentUserDep, service: FlashcardServiceDep):
    service.delete(flashcard_id, current.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{flashcard_id}/review", response_model=FlashcardDTO)
def review_flashcard(
    flashcard_id: UUID,
    payload: ReviewRequest,
    current: CurrentUserDep,
    service: FlashcardServiceDep,
):
    """Grade one recall (0-5) and reschedule the card."""
    card = service.review(flashcard_id, current.id, payload.quality)
    logger.info(f"Reviewed flashcard {flashcard_id}: q={payload.quality}, next={card.next_review_date}")
    return card
