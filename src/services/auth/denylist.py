import logging
from datetime import datetime, timezone

from redis.asyncio import Redis

logger = logging.getLogger(__name__)

DENYLIST_KEY_PREFIX = "auth:revoked"


def _key(jti: str) -> str:
    return f"{DENYLIST_KEY_PREFIX}:{jti}"


def _session_key(session_id: str) -> str:
    return f"{DENYLIST_KEY_PREFIX}:session:{session_id}"


class TokenDenylist:
    """Revoked token and session ids, kept in Redis until the tokens would expire anyway."""

    def __init__(self, redis_client: Redis):
        self._redis = redis_client

    async def _set_until(self, key: str, expires_at: int) -> int:
        ttl = expires_at - int(datetime.now(timezone.utc).timestamp())
        if ttl > 0:
            await self._redis.set(key, "1", ex=ttl)
        return ttl

    async def revoke(self, jti: str, expires_at: int) -> None:
        ttl = await self._set_until(_key(jti), expires_at)
        if ttl > 0:
            logger.info("Token revoked", extra={"jti": jti, "ttl": ttl})

    async def revoke_session(self, session_id: str, expires_at: int) -> None:
        """Revoke every token issued for one login, refresh tokens included."""
        ttl = await self._set_until(_session_key(session_id), expires_at)
        if ttl > 0:
            logger.info("Session revoked", extra={"sid": session_id, "ttl": ttl})

    async def is_revoked(self, jti: str) -> bool:
        return bool(await self._redis.exists(_key(jti)))

    async def is_session_revoked(self, session_id: str) -> bool:
        return bool(await self._redis.exists(_session_key(session_id)))
