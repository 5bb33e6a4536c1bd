from src.services.openrouter.client import OpenRouterClient
from src.services.openrouter.factory import make_openrouter_client

__all__ = ["OpenRouterClient", "make_openrouter_client"]
