from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from src.models.profile import Profile
from src.models.user import User


class UsersRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, user_id: UUID) -> Optional[User]:
        stmt = select(User).where(User.id == user_id)
        return self.session.scalar(stmt)

    def get_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(User.email == email.lower())
        return self.session.scalar(stmt)

    def create_with_profile(
        self, email: str, password_hash: str, display_name: Optional[str] = None
    ) -> User:
        """Create the account and its profile in one transaction."""
        user = User(email=email.lower(), password_hash=password_hash)
        self.session.add(user)
        self.session.flush()

        profile = Profile(
            user_id=user.id,
            display_name=display_name,
            total_cards_created=0,
            total_cards_generated_by_ai=0,
            daily_generation_count=0,
            last_generation_date=None,
        )
        self.session.add(profile)
        self.session.commit()
        self.session.refresh(user)
        return user
