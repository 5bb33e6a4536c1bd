import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Literal, Optional

import bcrypt
from jose import JWTError, jwt

from src.config import Settings, get_settings
from src.exceptions import UnauthorizedError

TokenType = Literal["access", "refresh"]

# bcrypt only looks at the first 72 bytes
_BCRYPT_MAX_BYTES = 72


def _encode_password(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_encode_password(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_encode_password(password), password_hash.encode("utf-8"))
    except ValueError:
        return False


class TokenCodec:
    """Issues and validates HS256 JWTs."""

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.secret = settings.jwt_secret
        self.algorithm = settings.jwt_algorithm
        self.ttl = {
            "access": settings.access_token_ttl_seconds,
            "refresh": settings.refresh_token_ttl_seconds,
        }

    def issue(
        self,
        user_id: uuid.UUID,
        token_type: TokenType,
        session_id: str,
        now: Optional[datetime] = None,
    ) -> str:
        """Sign a token; ``session_id`` is shared by the access/refresh pair of one login."""
        now = now or datetime.now(timezone.utc)
        claims = {
            "sub": str(user_id),
            "jti": uuid.uuid4().hex,
            "sid": session_id,
            "type": token_type,
            "iat": int(now.timestamp()),
            "exp": now + timedelta(seconds=self.ttl[token_type]),
        }
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def decode(self, token: str, expected_type: TokenType) -> Dict[str, Any]:
        try:
            claims = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as e:
            raise UnauthorizedError("Invalid or expired token") from e

        if claims.get("type") != expected_type or not all(claims.get(k) for k in ("sub", "jti", "sid")):
            raise UnauthorizedError("Invalid or expired token")
        return claims
