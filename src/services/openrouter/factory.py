from functools import lru_cache

from src.services.openrouter.client import OpenRouterClient


@lru_cache(maxsize=1)
def make_openrouter_client() -> OpenRouterClient:
    """
    Create and return a singleton OpenRouter client instance.

    Returns:
        OpenRouterClient: Configured LLM client
    """
    return OpenRouterClient()
