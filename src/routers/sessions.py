from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query

from src.dependencies import CurrentUserDep, GenerationServiceDep
from src.schemas.api.generation import GenerationSessionWithCards, SessionsListResponse, SessionsQuery

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.get("", response_model=SessionsListResponse)
def list_sessions(
    query: Annotated[SessionsQuery, Query()],
    current: CurrentUserDep,
    service: GenerationServiceDep,
):
    return service.list_sessions(current.id, page=query.page, limit=query.limit, status=query.status)


@router.get("/{session_id}", response_model=GenerationSessionWithCards)
def get_session(session_id: UUID, current: CurrentUserDep, service: GenerationServiceDep):
    """One generation session with the flashcards accepted from it."""
    return service.get_session(current.id, session_id)
