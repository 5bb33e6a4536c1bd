import logging
import uuid
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from src.exceptions import ConflictError, PersistenceError, UnauthorizedError
from src.middlewares import sanitize_metadata
from src.models.user import User
from src.repositories.users import UsersRepository
from src.schemas.api.auth import AuthResponse, AuthSession, LoginRequest, SignupRequest, UserInfo
from src.services.auth.denylist import TokenDenylist
from src.services.auth.security import TokenCodec, hash_password, verify_password

logger = logging.getLogger(__name__)


class AuthService:
    """Local identity provider: accounts, credentials and bearer tokens."""

    def __init__(self, users: UsersRepository, codec: TokenCodec, denylist: TokenDenylist):
        self.users = users
        self.codec = codec
        self.denylist = denylist

    def _session_for(self, user: User, session_id: Optional[str] = None) -> AuthResponse:
        # A refreshed pair keeps the session id so logout revokes the whole chain
        session_id = session_id or uuid.uuid4().hex
        return AuthResponse(
            user=UserInfo(id=user.id, email=user.email),
            session=AuthSession(
                access_token=self.codec.issue(user.id, "access", session_id),
                refresh_token=self.codec.issue(user.id, "refresh", session_id),
                expires_in=self.codec.ttl["access"],
            ),
        )

    def sign_up(self, data: SignupRequest) -> AuthResponse:
        """Register an account, create its profile and open a session."""
        if self.users.get_by_email(data.email):
            raise ConflictError("An account with this email already exists")

        try:
            user = self.users.create_with_profile(
                email=data.email,
                password_hash=hash_password(data.password),
                display_name=data.display_name,
            )
        except IntegrityError as e:
            self.users.session.rollback()
            raise ConflictError("An account with this email already exists") from e
        except SQLAlchemyError as e:
            self.users.session.rollback()
            logger.error("Signup failed", extra=sanitize_metadata({"email": data.email, "error": str(e)}))
            raise PersistenceError("Failed to create user profile") from e

        logger.info("User registered", extra={"user_id": str(user.id)})
        return self._session_for(user)

    def sign_in(self, data: LoginRequest) -> AuthResponse:
        user = self.users.get_by_email(data.email)
        if user is None or not verify_password(data.password, user.password_hash):
            raise UnauthorizedError("Invalid email or password")
        return self._session_for(user)

    async def refresh(self, refresh_token: str) -> AuthResponse:
        claims = self.codec.decode(refresh_token, "refresh")
        if await self.denylist.is_session_revoked(claims["sid"]):
            raise UnauthorizedError("Token has been revoked")

        try:
            user = self.users.get_by_id(UUID(claims["sub"]))
        except ValueError as e:
            raise UnauthorizedError("Invalid or expired token") from e
        if user is None:
            raise UnauthorizedError("Invalid or expired token")
        return self._session_for(user, claims["sid"])

    async def sign_out(self, claims: dict) -> None:
        """Revoke the presented access token and every refresh token of its session."""
        await self.denylist.revoke(claims["jti"], int(claims["exp"]))
        # No refresh token of this session outlives now + refresh ttl
        session_expires_at = int(datetime.now(timezone.utc).timestamp()) + self.codec.ttl["refresh"]
        await self.denylist.revoke_session(claims["sid"], session_expires_at)

    async def authenticate(self, token: Optional[str]) -> tuple[User, dict]:
        """Resolve a bearer access token to its user.

        Raises:
            UnauthorizedError: missing, invalid, revoked or orphaned token
        """
        if not token:
            raise UnauthorizedError()

        claims = self.codec.decode(token, "access")
        if await self.denylist.is_revoked(claims["jti"]) or await self.denylist.is_session_revoked(claims["sid"]):
            raise UnauthorizedError("Token has been revoked")

        try:
            user = self.users.get_by_id(UUID(claims["sub"]))
        except ValueError as e:
            raise UnauthorizedError("Invalid or expired token") from e
        if user is None:
            raise UnauthorizedError("Invalid or expired token")
        return user, claims
