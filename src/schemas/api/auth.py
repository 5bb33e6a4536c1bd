from datetime import date
from typing import Annotated, Optional
from uuid import UUID

from pydantic import EmailStr, Field, StringConstraints, field_validator

from src.schemas.api.common import CamelModel

Password = Annotated[str, StringConstraints(min_length=8, max_length=72)]


class SignupRequest(CamelModel):
    email: EmailStr
    password: Password
    display_name: Optional[str] = Field(None, max_length=100)

    @field_validator("display_name")
    @classmethod
    def _blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None

    @field_validator("email")
    @classmethod
    def _lowercase(cls, v: str) -> str:
        return v.lower()


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def _lowercase(cls, v: str) -> str:
        return v.lower()


class RefreshRequest(CamelModel):
    refresh_token: str = Field(..., min_length=1)


class UserInfo(CamelModel):
    id: UUID
    email: str


class AuthSession(CamelModel):
    access_token: str
    refresh_token: str
    expires_in: int = Field(..., description="Access token lifetime in seconds")


class AuthResponse(CamelModel):
    user: UserInfo
    session: Optional[AuthSession] = None


class ProfileSummary(CamelModel):
    display_name: Optional[str] = None
    total_cards_created: int
    total_cards_generated_by_ai: int = Field(..., alias="totalCardsGeneratedByAI")
    daily_generation_count: int
    last_generation_date: Optional[date] = None


class CurrentUserResponse(CamelModel):
    id: UUID
    email: str
    profile: ProfileSummary
