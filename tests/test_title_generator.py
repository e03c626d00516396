"""Tests for language detection and chat title generation."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from WillChat.services.completion_client import CompletionClient
from WillChat.services.exceptions import CompletionAPIError, CompletionTransportError
from WillChat.services.title_generator import (
    TITLE_PROMPTS,
    TitleGenerator,
    clean_title,
    detect_language,
)

from .conftest import make_mock_client


class TestDetectLanguage:

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("Ciao, come stai oggi?", "italian"),
            ("What is the weather like in the city", "english"),
            ("Je voudrais réserver une table pour le dîner avec mes amis", "french"),
            ("¿Qué tiempo hace hoy en la ciudad para el fin de semana?", "spanish"),
            ("Wie ist das Wetter in der Stadt", "german"),
        ],
    )
    def test_detects_language_by_keyword_overlap(self, text, expected):
        assert detect_language(text) == expected

    def test_no_matches_defaults_to_italian(self):
        assert detect_language("xyzzy plugh") == "italian"
        assert detect_language("") == "italian"

    def test_ties_resolve_to_first_listed_language(self):
        # "il" is both Italian and French
        assert detect_language("il") == "italian"
        # one hit each for English ("the") and Spanish/Italian ("la")
        assert detect_language("the la") == "italian"

    def test_matching_is_case_insensitive(self):
        assert detect_language("THE WEATHER IS NICE") == "english"


class TestCleanTitle:

    def test_strips_quotes_and_caps_at_four_words(self):
        assert clean_title('  "Weather Forecast For Rome Tomorrow"  ') == "Weather Forecast For Rome"

    def test_collapses_whitespace(self):
        assert clean_title("Trip   'Planning'") == "Trip Planning"


class TestTitleGenerator:

    @pytest.mark.asyncio
    async def test_requests_title_in_detected_language(self):
        client = make_mock_client(reply="Weather In Rome")
        generator = TitleGenerator(client)

        title = await generator.generate("What is the weather like in Rome")

        assert title == "Weather In Rome"
        messages = client.complete.await_args.args[0]
        assert messages[0] == {"role": "system", "content": TITLE_PROMPTS["english"][0]}
        assert messages[1]["role"] == "user"
        assert '"What is the weather like in Rome"' in messages[1]["content"]

    @pytest.mark.asyncio
    async def test_long_reply_truncated_to_four_words(self):
        generator = TitleGenerator(make_mock_client(reply="'Una conversazione molto lunga davvero'"))

        assert await generator.generate("Ciao, come stai oggi?") == "Una conversazione molto lunga"

    @pytest.mark.asyncio
    async def test_italian_failure_falls_back_to_first_three_words(self):
        client = make_mock_client(side_effect=CompletionAPIError(503, "unavailable"))
        generator = TitleGenerator(client)

        title = await generator.generate("Ciao, come stai oggi?")

        assert title == "Ciao, come stai"
        messages = client.complete.await_args.args[0]
        assert messages[0]["content"] == TITLE_PROMPTS["italian"][0]

    @pytest.mark.asyncio
    async def test_transport_failure_falls_back(self):
        generator = TitleGenerator(make_mock_client(side_effect=CompletionTransportError("down")))

        assert await generator.generate("Plan my trip to Lisbon") == "Plan my trip"

    @pytest.mark.asyncio
    async def test_malformed_reply_falls_back(self):
        generator = TitleGenerator(make_mock_client(reply=None))

        assert await generator.generate("Plan my trip to Lisbon") == "Plan my trip"

    @pytest.mark.asyncio
    async def test_empty_reply_uses_language_placeholder(self):
        assert await TitleGenerator(make_mock_client(reply='""')).generate("ciao") == "Nuova Chat"
        assert await TitleGenerator(make_mock_client(reply="  ")).generate("how are you") == "New Chat"

    @pytest.mark.asyncio
    async def test_failure_on_empty_input_uses_placeholder(self):
        generator = TitleGenerator(make_mock_client(side_effect=CompletionAPIError(500)))

        assert await generator.generate("") == "Nuova Chat"


def _openai_with(create_return=None, create_side_effect=None):
    fake = MagicMock()
    fake.chat.completions.create = AsyncMock(return_value=create_return, side_effect=create_side_effect)
    return fake


class TestTitleGeneratorWithCompletionClient:

    @pytest.mark.asyncio
    async def test_choice_without_message_falls_back(self):
        fake = _openai_with(create_return=SimpleNamespace(choices=[SimpleNamespace(message=None)]))
        generator = TitleGenerator(CompletionClient(client=fake))

        assert await generator.generate("Ciao, come stai oggi?") == "Ciao, come stai"

    @pytest.mark.asyncio
    async def test_unparseable_response_falls_back(self):
        response = httpx.Response(200, request=httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions"))
        error = openai.APIResponseValidationError(response=response, body=None)
        generator = TitleGenerator(CompletionClient(client=_openai_with(create_side_effect=error)))

        assert await generator.generate("Ciao, come stai oggi?") == "Ciao, come stai"

    @pytest.mark.asyncio
    async def test_unexpected_client_error_falls_back(self):
        generator = TitleGenerator(make_mock_client(side_effect=RuntimeError("boom")))

        assert await generator.generate("Plan my trip to Lisbon") == "Plan my trip"
