from src.schemas.api.common import CamelModel, ErrorResponse, PaginationMeta
from src.schemas.api.auth import (
    AuthResponse,
    AuthSession,
    CurrentUserResponse,
    LoginRequest,
    ProfileSummary,
    RefreshRequest,
    SignupRequest,
    UserInfo,
)
from src.schemas.api.profile import ProfileResponse, UpdateProfileRequest, UserStatsResponse
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
from src.schemas.api.generation import (
    AcceptCardItem,
    AcceptCardsRequest,
    AcceptCardsResponse,
    GenerateRequest,
    GenerateResponse,
    GeneratedCard,
    GenerationSessionDTO,
    GenerationSessionWithCards,
    SessionFlashcard,
    SessionsListResponse,
    SessionsQuery,
)

__all__ = [
    "CamelModel",
    "ErrorResponse",
    "PaginationMeta",
    "AuthResponse",
    "AuthSession",
    "CurrentUserResponse",
    "LoginRequest",
    "ProfileSummary",
    "RefreshRequest",
    "SignupRequest",
    "UserInfo",
    "ProfileResponse",
    "UpdateProfileRequest",
    "UserStatsResponse",
    "CreateFlashcardRequest",
    "DueCardDTO",
    "DueCardsQuery",
    "DueCardsResponse",
    "FlashcardDTO",
    "FlashcardsListResponse",
    "FlashcardsQuery",
    "ReviewRequest",
    "UpdateFlashcardRequest",
    "AcceptCardItem",
    "AcceptCardsRequest",
    "AcceptCardsResponse",
    "GenerateRequest",
    "GenerateResponse",
    "GeneratedCard",
    "GenerationSessionDTO",
    "GenerationSessionWithCards",
    "SessionFlashcard",
    "SessionsListResponse",
    "SessionsQuery",
]
