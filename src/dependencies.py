from dataclasses import dataclass
from typing import Annotated, Any, Dict, Generator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from redis.asyncio import Redis
from sqlalchemy.orm import Session

from src.config import Settings, get_settings
from src.db.interfaces.postgresql import PostgreSQLDatabase
from src.db.redis.locks import KeyedLock
from src.models.user import User
from src.repositories.flashcards import FlashcardsRepository
from src.repositories.generation_sessions import GenerationSessionsRepository
from src.repositories.profiles import ProfilesRepository
from src.repositories.users import UsersRepository
from src.services.auth import AuthService, TokenCodec, TokenDenylist
from src.services.flashcards import FlashcardService
from src.services.generation import GenerationService
from src.services.openrouter.client import OpenRouterClient
from src.services.profiles import ProfileService

bearer_scheme = HTTPBearer(auto_error=False)


def get_database(request: Request) -> PostgreSQLDatabase:
    return request.app.state.database


def get_db_session(
    database: Annotated[PostgreSQLDatabase, Depends(get_database)],
) -> Generator[Session, None, None]:
    with database.get_session() as session:
        yield session


def get_redis(request: Request) -> Redis:
    return request.app.state.redis


def get_openrouter_client(request: Request) -> OpenRouterClient:
    return request.app.state.openrouter_client


SettingsDep = Annotated[Settings, Depends(get_settings)]
SessionDep = Annotated[Session, Depends(get_db_session)]
RedisDep = Annotated[Redis, Depends(get_redis)]
OpenRouterDep = Annotated[OpenRouterClient, Depends(get_openrouter_client)]


def get_auth_service(session: SessionDep, redis_client: RedisDep, settings: SettingsDep) -> AuthService:
    return AuthService(
        users=UsersRepository(session),
        codec=TokenCodec(settings),
        denylist=TokenDenylist(redis_client),
    )


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]


@dataclass
class CurrentUser:
    """Authenticated caller plus the claims of the presented access token."""

    user: User
    claims: Dict[str, Any]

    @property
    def id(self):
        return self.user.id


async def get_current_user(
    auth: AuthServiceDep,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
) -> CurrentUser:
    token = credentials.credentials if credentials else None
    user, claims = await auth.authenticate(token)
    return CurrentUser(user=user, claims=claims)


CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]


def get_keyed_lock(redis_client: RedisDep, settings: SettingsDep) -> KeyedLock:
    return KeyedLock(
        redis_client,
        timeout=settings.generation_lock_timeout,
        blocking_timeout=settings.generation_lock_wait,
        enabled=settings.generation_locks_enabled,
    )


def get_profile_service(session: SessionDep) -> ProfileService:
    return ProfileService(ProfilesRepository(session))


def get_flashcard_service(session: SessionDep) -> FlashcardService:
    return FlashcardService(FlashcardsRepository(session))


def get_generation_service(
    session: SessionDep,
    llm: OpenRouterDep,
    lock: Annotated[KeyedLock, Depends(get_keyed_lock)],
    settings: SettingsDep,
) -> GenerationService:
    return GenerationService(
        profiles=ProfilesRepository(session),
        sessions=GenerationSessionsRepository(session),
        flashcards=FlashcardsRepository(session),
        llm=llm,
        lock=lock,
        daily_limit=settings.daily_generation_limit,
    )


ProfileServiceDep = Annotated[ProfileService, Depends(get_profile_service)]
FlashcardServiceDep = Annotated[FlashcardService, Depends(get_flashcard_service)]
GenerationServiceDep = Annotated[GenerationService, Depends(get_generation_service)]
