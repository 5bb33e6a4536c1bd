from fastapi import APIRouter

from src.dependencies import CurrentUserDep, ProfileServiceDep
from src.schemas.api.profile import ProfileResponse, UpdateProfileRequest, UserStatsResponse

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=ProfileResponse)
def get_profile(current: CurrentUserDep, profiles: ProfileServiceDep):
    return profiles.get_profile(current.id)


@router.patch("", response_model=ProfileResponse)
def update_profile(payload: UpdateProfileRequest, current: CurrentUserDep, profiles: ProfileServiceDep):
    """Update the display name; nothing else on the profile is user-editable."""
    return profiles.update_profile(current.id, payload.display_name)


@router.get("/stats", response_model=UserStatsResponse)
def get_stats(current: CurrentUserDep, profiles: ProfileServiceDep):
    return profiles.get_stats(current.id)
