"""Tests for the AI text generator."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from openai import OpenAIError
from prometheus_client import REGISTRY

from fitofaucet.ai.client import ChatTurn, TextGenerator, UpstreamUnavailableError


def make_response(content):
    """Build a chat completion response double."""
    response = MagicMock()
    if content is None:
        response.choices = []
    else:
        choice = MagicMock()
        choice.message.content = content
        response.choices = [choice]
    return response


@pytest.fixture
def mock_openai():
    """AsyncOpenAI double with a mocked completions endpoint."""
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=make_response("  hello  "))
    return client


def ai_sample(operation, status):
    return (
        REGISTRY.get_sample_value(
            "faucet_ai_requests_total",
            {"operation": operation, "status": status},
        )
        or 0
    )


class TestTextGenerator:
    """Tests for TextGenerator."""

    def test_from_settings(self):
        """from_settings configures the OpenAI-compatible client."""
        with patch("fitofaucet.ai.client.AsyncOpenAI") as mock_class:
            generator = TextGenerator.from_settings(
                api_key="key", base_url="http://ai.local/v1/", model="gemini-2.5-flash"
            )

        mock_class.assert_called_once_with(api_key="key", base_url="http://ai.local/v1/")
        assert generator.model == "gemini-2.5-flash"

    async def test_generate_returns_stripped_text(self, mock_openai):
        """Completion text is stripped."""
        generator = TextGenerator(mock_openai, "gemini-2.5-flash")

        assert await generator.generate("hi") == "hello"

    async def test_generate_message_order(self, mock_openai):
        """System prompt, then history, then the new prompt."""
        generator = TextGenerator(mock_openai, "gemini-2.5-flash")

        await generator.generate(
            "third",
            system_instruction="be brief",
            history=[ChatTurn("user", "first"), ChatTurn("assistant", "second")],
            temperature=0.5,
        )

        kwargs = mock_openai.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gemini-2.5-flash"
        assert kwargs["temperature"] == 0.5
        assert kwargs["messages"] == [
            {"role": "system", "content": "be brief"},
            {"role": "user", "content": "first"},
            {"role": "assistant", "content": "second"},
            {"role": "user", "content": "third"},
        ]

    async def test_generate_without_options(self, mock_openai):
        """No system prompt or temperature when none is given."""
        generator = TextGenerator(mock_openai, "m")

        await generator.generate("only")

        kwargs = mock_openai.chat.completions.create.call_args.kwargs
        assert "temperature" not in kwargs
        assert kwargs["messages"] == [{"role": "user", "content": "only"}]

    async def test_service_error(self, mock_openai):
        """Client errors become UpstreamUnavailableError."""
        mock_openai.chat.completions.create.side_effect = OpenAIError("quota exceeded")
        generator = TextGenerator(mock_openai, "m")
        before = ai_sample("test_error", "error")

        with pytest.raises(UpstreamUnavailableError, match="quota exceeded"):
            await generator.generate("hi", operation="test_error")

        assert ai_sample("test_error", "error") == before + 1

    @pytest.mark.parametrize("content", [None, "", "   "])
    async def test_empty_completion(self, mock_openai, content):
        """Empty or missing text is an upstream failure."""
        mock_openai.chat.completions.create.return_value = make_response(content)
        generator = TextGenerator(mock_openai, "m")

        with pytest.raises(UpstreamUnavailableError, match="empty"):
            await generator.generate("hi")

    async def test_success_counted(self, mock_openai):
        """Successful calls are counted per operation."""
        generator = TextGenerator(mock_openai, "m")
        before = ai_sample("test_ok", "ok")

        await generator.generate("hi", operation="test_ok")

        assert ai_sample("test_ok", "ok") == before + 1
