import logging

from fastapi import APIRouter, Response, status

from src.dependencies import AuthServiceDep, CurrentUserDep, ProfileServiceDep
from src.schemas.api.auth import (
    AuthResponse,
    CurrentUserResponse,
    LoginRequest,
    ProfileSummary,
    RefreshRequest,
    SignupRequest,
)

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def signup(payload: SignupRequest, auth: AuthServiceDep):
    """Register an account and its profile, returning a fresh session."""
    return auth.sign_up(payload)


@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, auth: AuthServiceDep):
    return auth.sign_in(payload)


@router.post("/refresh", response_model=AuthResponse)
async def refresh(payload: RefreshRequest, auth: AuthServiceDep):
    """Exchange a refresh token for a new token pair."""
    return await auth.refresh(payload.refresh_token)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(current: CurrentUserDep, auth: AuthServiceDep):
    await auth.sign_out(current.claims)
    logger.info(f"User {current.id} signed out")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/user", response_model=CurrentUserResponse)
def current_user(current: CurrentUserDep, profiles: ProfileServiceDep):
    profile = profiles.get_profile(current.id)
    return CurrentUserResponse(
        id=current.user.id,
        email=current.user.email,
        profile=ProfileSummary.model_validate(profile),
    )
