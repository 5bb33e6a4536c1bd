import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from src.exceptions import NotFoundError, PersistenceError
from src.models.profile import Profile
from src.repositories.profiles import ProfilesRepository
from src.schemas.api.profile import UserStatsResponse

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, repo: ProfilesRepository):
        self.repo = repo

    def get_profile(self, user_id: UUID) -> Profile:
        try:
            profile = self.repo.get_by_user_id(user_id)
        except SQLAlchemyError as e:
            logger.error(f"Profile query failed for user {user_id}: {e}")
            raise PersistenceError("Failed to fetch profile") from e
        if profile is None:
            raise NotFoundError("User profile not found")
        return profile

    def update_profile(self, user_id: UUID, display_name: Optional[str]) -> Profile:
        try:
            profile = self.repo.update_display_name(user_id, display_name)
        except SQLAlchemyError as e:
            self.repo.session.rollback()
            logger.error(f"Profile update failed for user {user_id}: {e}")
            raise PersistenceError("Failed to update profile") from e
        if profile is None:
            raise NotFoundError("User profile not found")
        return profile

    def get_stats(self, user_id: UUID, now: Optional[datetime] = None) -> UserStatsResponse:
        try:
            stats = self.repo.get_stats(user_id, now=now)
        except SQLAlchemyError as e:
            logger.error(f"User stats aggregation failed for user {user_id}: {e}")
            raise PersistenceError("Failed to fetch user statistics") from e
        if stats is None:
            return UserStatsResponse()
        return UserStatsResponse(**stats)
