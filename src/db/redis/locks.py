import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from redis.asyncio import Redis
from redis.exceptions import LockError

from src.exceptions import ConflictError

logger = logging.getLogger(__name__)

LOCK_KEY_PREFIX = "lock"


class KeyedLock:
    """Per-key mutual exclusion backed by Redis locks.

    Serializes read-modify-write sequences that span several statements
    (rate-limit check + counter update, session acceptance).
    """

    def __init__(
        self,
        redis_client: Redis,
        timeout: float = 60.0,
        blocking_timeout: float = 5.0,
        enabled: bool = True,
    ):
        self._redis = redis_client
        self.timeout = timeout
        self.blocking_timeout = blocking_timeout
        self.enabled = enabled

    @asynccontextmanager
    async def hold(self, scope: str, key: str) -> AsyncIterator[None]:
        if not self.enabled:
            yield
            return

        name = f"{LOCK_KEY_PREFIX}:{scope}:{key}"
        lock = self._redis.lock(
            name, timeout=self.timeout, blocking_timeout=self.blocking_timeout
        )
        try:
            acquired = await lock.acquire()
        except LockError as e:
            logger.warning(f"Could not acquire {name}: {e}")
            acquired = False

        if not acquired:
            raise ConflictError("Another request for this resource is already in progress")

        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError:
                # Lock expired while held; the next holder already owns it.
                logger.warning(f"Lock {name} expired before release")
