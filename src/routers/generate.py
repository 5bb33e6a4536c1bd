from uuid import UUID

from fastapi import APIRouter, status

from src.dependencies import CurrentUserDep, GenerationServiceDep
from src.schemas.api.generation import (
    AcceptCardsRequest,
    AcceptCardsResponse,
    GenerateRequest,
    GenerateResponse,
)

router = APIRouter(prefix="/generate", tags=["generate"])


@router.post("", response_model=GenerateResponse)
async def generate_flashcards(
    payload: GenerateRequest,
    current: CurrentUserDep,
    service: GenerationServiceDep,
):
    """Generate provisional flashcards from source text.

    Limited to a fixed number of generations per UTC day; the cards are not
    saved until they are accepted.
    """
    return await service.generate(current.id, payload.input_text, model=payload.model)


@router.post(
    "/{session_id}/accept",
    response_model=AcceptCardsResponse,
    status_code=status.HTTP_201_CREATED,
)
async def accept_flashcards(
    session_id: UUID,
    payload: AcceptCardsRequest,
    current: CurrentUserDep,
    service: GenerationServiceDep,
):
    return await service.accept(current.id, session_id, payload.cards)
