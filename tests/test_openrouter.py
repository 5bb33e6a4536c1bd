import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import pytest
from openai import APIConnectionError, APITimeoutError

from src.config import Settings
from src.exceptions import GenerationError, LLMConnectionError, LLMTimeoutError
from src.services.openrouter.client import OpenRouterClient
from src.services.openrouter.prompts import (
    FlashcardPromptBuilder,
    FlashcardResponseParser,
    card_violations,
    validate_generated_cards,
)
from tests.fakes import make_cards

CARDS = [
    {"front": "What organelle hosts photosynthesis?", "back": "The chloroplast, in plant cells."},
    {"front": "Which pigment absorbs light?", "back": "Chlorophyll, mostly blue and red light."},
]


class TestResponseParser:
    def test_parses_raw_array(self):
        cards = FlashcardResponseParser.parse(json.dumps(CARDS))

        assert [(c.front, c.back) for c in cards] == [(c["front"], c["back"]) for c in CARDS]
        assert len({c.id for c in cards}) == 2

    def test_unwraps_fenced_block(self):
        text = "Here you go:\n```json\n" + json.dumps(CARDS) + "\n```\nEnjoy!"
        assert len(FlashcardResponseParser.parse(text)) == 2

    def test_extracts_array_from_surrounding_prose(self):
        text = "Sure! " + json.dumps(CARDS) + " Let me know if you need more."
        assert len(FlashcardResponseParser.parse(text)) == 2

    def test_accepts_question_answer_keys(self):
        text = json.dumps([{"question": "What is ATP used for?", "answer": "Storing and moving energy."}])
        card = FlashcardResponseParser.parse(text)[0]
        assert card.front == "What is ATP used for?"
        assert card.back == "Storing and moving energy."

    def test_truncates_long_sides(self):
        text = json.dumps([{"front": "q" * 1500, "back": "a" * 2500}])
        card = FlashcardResponseParser.parse(text)[0]
        assert len(card.front) == 1000
        assert len(card.back) == 2000

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "   ",
            "not json at all",
            "[]",
            json.dumps({"front": "a", "back": "b"}),
            json.dumps([{"front": "What is this?"}]),
            json.dumps([{"front": "", "back": "Empty front side"}]),
        ],
    )
    def test_rejects_unusable_output(self, text):
        with pytest.raises(GenerationError):
            FlashcardResponseParser.parse(text)


class TestValidationGate:
    def test_accepts_reasonable_cards(self):
        validate_generated_cards(make_cards(5))

    def test_one_short_card_fails_the_batch(self):
        cards = make_cards(3)
        cards[1].back = "   short   "
        with pytest.raises(GenerationError, match="Card 2"):
            validate_generated_cards(cards)

    def test_reports_every_violation(self):
        problems = card_violations("short", "x" * 2001)
        assert len(problems) == 2


class TestOpenRouterClient:
    @pytest.fixture
    def sdk(self):
        return MagicMock()

    @pytest.fixture
    def llm(self, sdk):
        settings = Settings(openrouter_api_key="test-key", openrouter_model="test/model")
        return OpenRouterClient(settings=settings, client=sdk)

    def test_prompt_has_system_and_user_messages(self):
        messages = FlashcardPromptBuilder().build_messages("source text")
        assert [m["role"] for m in messages] == ["system", "user"]
        assert messages[1]["content"] == "source text"

    def test_generate_flashcards(self, llm, sdk):
        sdk.chat.completions.create.return_value = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=json.dumps(CARDS)))],
            usage=SimpleNamespace(total_tokens=321),
        )

        result = llm.generate_flashcards("source text")

        assert len(result.cards) == 2
        assert result.tokens_used == 321
        assert result.model == "test/model"
        kwargs = sdk.chat.completions.create.call_args.kwargs
        assert kwargs["temperature"] == 0.3
        assert kwargs["max_tokens"] == 2000

    def test_timeout_is_mapped(self, llm, sdk):
        request = httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")
        sdk.chat.completions.create.side_effect = APITimeoutError(request=request)

        with pytest.raises(LLMTimeoutError):
            llm.generate_flashcards("source text")

    def test_connection_error_is_mapped(self, llm, sdk):
        request = httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")
        sdk.chat.completions.create.side_effect = APIConnectionError(request=request)

        with pytest.raises(LLMConnectionError):
            llm.generate_flashcards("source text")
