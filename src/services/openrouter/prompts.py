import json
import logging
import re
from typing import Any, List

from pydantic import ValidationError
from src.exceptions import GenerationError
from src.schemas.openrouter import ProvisionalCard, RawCard

logger = logging.getLogger(__name__)

FRONT_MAX_LENGTH = 1000
BACK_MAX_LENGTH = 2000
MIN_CONTENT_LENGTH = 10

SYSTEM_PROMPT = """You are a flashcard generation assistant. Your task is to generate high-quality question-answer pairs from the provided text.

Guidelines:
- Generate 5-10 flashcards from the input text
- Questions (front) should be clear, concise, and specific (max 200 characters)
- Answers (back) should be complete but not overly verbose (max 500 characters)
- Focus on key concepts, facts, definitions, and relationships
- Avoid ambiguous or trick questions
- Ensure answers are self-contained and don't require external context
- Use simple, direct language

Return ONLY a valid JSON array with this exact format:
[
  {"front": "question text", "back": "answer text"},
  {"front": "question text", "back": "answer text"}
]

Do NOT include any markdown formatting, code blocks, explanations, or additional text.
Return ONLY the raw JSON array."""

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)
_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")


class FlashcardPromptBuilder:
    """Builds chat messages for flashcard generation."""

    def __init__(self, system_prompt: str = SYSTEM_PROMPT):
        self.system_prompt = system_prompt

    def build_messages(self, input_text: str) -> List[dict]:
        return [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": input_text},
        ]


class FlashcardResponseParser:
    """Turns raw completion text into provisional cards (all-or-nothing)."""

    @staticmethod
    def extract_json(text: str) -> str:
        """Return the JSON array text, unwrapping a fenced code block if present."""
        fenced = _FENCED_BLOCK.search(text)
        if fenced:
            return fenced.group(1).strip()

        array_match = _JSON_ARRAY.search(text)
        if array_match:
            return array_match.group(0).strip()

        return text.strip()

    @classmethod
    def parse(cls, text: str) -> List[ProvisionalCard]:
        """Parse completion text into normalized cards.

        Raises:
            GenerationError: invalid JSON, empty/non-list payload or malformed item
        """
        if not text or not text.strip():
            raise GenerationError("No content in AI response")

        payload = cls.extract_json(text)
        try:
            data: Any = json.loads(payload)
        except json.JSONDecodeError as e:
            logger.warning("Failed to decode AI response as JSON: %s (preview=%r)", e.msg, text[:500])
            raise GenerationError("AI returned invalid JSON format") from e

        if not isinstance(data, list) or not data:
            raise GenerationError("AI returned empty or invalid array")

        cards: List[ProvisionalCard] = []
        for index, item in enumerate(data):
            try:
                raw = RawCard.model_validate(item)
            except ValidationError as e:
                raise GenerationError(f"Invalid card format at index {index}") from e

            cards.append(
                ProvisionalCard(
                    front=raw.front[:FRONT_MAX_LENGTH],
                    back=raw.back[:BACK_MAX_LENGTH],
                )
            )

        return cards


def card_violations(front: str, back: str) -> List[str]:
    """Length-gate violations for one pair; empty when the pair is acceptable."""
    problems = []
    if len(front.strip()) < MIN_CONTENT_LENGTH:
        problems.append(f"Question too short (minimum {MIN_CONTENT_LENGTH} characters)")
    if len(back.strip()) < MIN_CONTENT_LENGTH:
        problems.append(f"Answer too short (minimum {MIN_CONTENT_LENGTH} characters)")
    if len(front) > FRONT_MAX_LENGTH:
        problems.append(f"Question too long (maximum {FRONT_MAX_LENGTH} characters)")
    if len(back) > BACK_MAX_LENGTH:
        problems.append(f"Answer too long (maximum {BACK_MAX_LENGTH} characters)")
    return problems


def validate_generated_cards(cards: List[ProvisionalCard]) -> None:
    """Reject the whole batch if any card fails the length gate."""
    for i, card in enumerate(cards, 1):
        problems = card_violations(card.front, card.back)
        if problems:
            raise GenerationError(f"Card {i}: {problems[0]}")
