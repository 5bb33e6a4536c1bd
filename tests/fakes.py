"""In-memory stand-ins and sample data shared by the tests."""

from typing import Dict, List, Set

from src.schemas.openrouter import GenerationResult, ProvisionalCard

DEFAULT_MODEL = "anthropic/claude-3-5-sonnet"

SOURCE_TEXT = (
    "Photosynthesis is the process by which green plants, algae and some bacteria convert "
    "light energy into chemical energy stored in glucose. It takes place in the chloroplasts, "
    "where chlorophyll absorbs mostly blue and red light. "
) * 8


class FakeLock:
    def __init__(self, redis_client: "FakeRedis", name: str):
        self._redis = redis_client
        self.name = name

    async def acquire(self) -> bool:
        if self.name in self._redis.held:
            return False
        self._redis.held.add(self.name)
        return True

    async def release(self) -> None:
        self._redis.held.discard(self.name)


class FakeRedis:
    """The subset of ``redis.asyncio.Redis`` the application touches."""

    def __init__(self):
        self.store: Dict[str, str] = {}
        self.held: Set[str] = set()
        self.lock_names: List[str] = []

    async def set(self, key, value, ex=None):
        self.store[key] = value
        return True

    async def get(self, key):
        return self.store.get(key)

    async def exists(self, *keys):
        return sum(1 for key in keys if key in self.store)

    async def delete(self, *keys):
        return sum(1 for key in keys if self.store.pop(key, None) is not None)

    async def ping(self):
        return True

    def lock(self, name, timeout=None, blocking_timeout=None):
        self.lock_names.append(name)
        return FakeLock(self, name)


def make_cards(count: int) -> List[ProvisionalCard]:
    return [
        ProvisionalCard(
            front=f"What is key concept number {i} of photosynthesis?",
            back=f"Key concept number {i} is how chlorophyll captures light energy.",
        )
        for i in range(1, count + 1)
    ]


def make_result(count: int = 8, tokens_used: int = 1234, time_ms: int = 900) -> GenerationResult:
    return GenerationResult(cards=make_cards(count), tokens_used=tokens_used, time_ms=time_ms, model=DEFAULT_MODEL)
