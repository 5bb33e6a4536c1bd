import logging
import time
import traceback
from typing import Any, Dict, List, Optional

from openai import APIConnectionError, APITimeoutError, OpenAI, OpenAIError

from src.config import Settings, get_settings
from src.exceptions import LLMConnectionError, LLMException, LLMTimeoutError
from src.schemas.openrouter import GenerationResult
from src.services.openrouter.prompts import FlashcardPromptBuilder, FlashcardResponseParser

logger = logging.getLogger(__name__)


class OpenRouterClient:
    """Client for OpenRouter's OpenAI-compatible chat completions API."""

    def __init__(self, settings: Optional[Settings] = None, client: Optional[OpenAI] = None):
        """Initialize OpenAI client with OpenRouter endpoint and API key."""
        settings = settings or get_settings()
        self.timeout = float(settings.openrouter_timeout)
        self.client = client or OpenAI(
            api_key=settings.openrouter_api_key,
            base_url=settings.openrouter_base_url,
            timeout=self.timeout,
            max_retries=0,
        )
        self.default_model = settings.openrouter_model
        self.temperature = settings.openrouter_temperature
        self.max_tokens = settings.openrouter_max_tokens
        self.prompt_builder = FlashcardPromptBuilder()
        self.response_parser = FlashcardResponseParser()

    def health_check(self) -> Dict[str, Any]:
        """Check if the LLM endpoint is reachable."""
        try:
            models = self.client.models.list()
            return {
                "status": "healthy",
                "message": "LLM endpoint reachable",
                "model_count": len(models.data),
            }
        except APIConnectionError as e:
            logger.error(f"[LLM ERROR] Connection to {self.client.base_url} failed: {e}")
            raise LLMConnectionError(f"Cannot connect to LLM service: {e}") from e
        except APITimeoutError as e:
            raise LLMTimeoutError(f"LLM service timeout: {e}") from e
        except OpenAIError as e:
            raise LLMException(f"Health check failed: {e}") from e

    def complete(
        self,
        messages: List[dict],
        model: Optional[str] = None,
        **kwargs,
    ) -> Dict[str, Any]:
        """Run one chat completion.

        Returns:
            Dict with ``response`` text and ``tokens_used``
        """
        model = model or self.default_model
        logger.info(f"Sending request to LLM: model={model}")

        try:
            completion = self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=kwargs.get("temperature", self.temperature),
                max_tokens=kwargs.get("max_tokens", self.max_tokens),
                timeout=kwargs.get("timeout", self.timeout),
            )
        except APITimeoutError as e:
            logger.error(f"[LLM ERROR] Timeout after {self.timeout}s: model={model}")
            raise LLMTimeoutError(f"AI service timeout after {self.timeout:.0f}s") from e
        except APIConnectionError as e:
            logger.error(
                f"[LLM ERROR] Connection failed.\n"
                f"Base URL: {self.client.base_url}\n"
                f"Details: {e}\n"
                f"Traceback:\n{traceback.format_exc()}"
            )
            raise LLMConnectionError(f"Cannot connect to LLM: {e}") from e
        except OpenAIError as e:
            raise LLMException(f"LLM API error: {e}") from e

        if not completion.choices:
            raise LLMException("LLM returned no choices")

        usage = completion.usage
        return {
            "response": completion.choices[0].message.content or "",
            "tokens_used": usage.total_tokens if usage else 0,
        }

    def generate_flashcards(self, input_text: str, model: Optional[str] = None) -> GenerationResult:
        """Generate provisional flashcards from ``input_text``.

        Raises:
            LLMTimeoutError, LLMConnectionError, LLMException: upstream failures
            GenerationError: unusable model output
        """
        model = model or self.default_model
        start = time.monotonic()

        result = self.complete(self.prompt_builder.build_messages(input_text), model=model)
        cards = self.response_parser.parse(result["response"])

        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.info(f"LLM produced {len(cards)} cards in {elapsed_ms}ms (model={model})")

        return GenerationResult(
            cards=cards,
            tokens_used=result["tokens_used"],
            time_ms=elapsed_ms,
            model=model,
        )
