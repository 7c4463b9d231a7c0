"""Text-completion client for the hosted generative-AI service.

Talks to any OpenAI-compatible chat completions endpoint; the default
configuration points at Gemini's compatibility layer.
"""

import logging
from dataclasses import dataclass

from openai import AsyncOpenAI, OpenAIError

from fitofaucet.observability.metrics import AI_REQUESTS

logger = logging.getLogger(__name__)


class UpstreamUnavailableError(Exception):
    """Raised when the AI service fails or returns no text."""


@dataclass
class ChatTurn:
    """One prior message in a conversation."""

    role: str  # "user" or "assistant"
    text: str


class TextGenerator:
    """Thin async wrapper over the chat completions API.

    Parameters
    ----------
    client : AsyncOpenAI
        Configured OpenAI-compatible client.
    model : str
        Model name to request.
    """

    def __init__(self, client: AsyncOpenAI, model: str):
        self._client = client
        self._model = model

    @classmethod
    def from_settings(cls, api_key: str, base_url: str, model: str) -> "TextGenerator":
        """Create a generator for an endpoint and API key."""
        return cls(AsyncOpenAI(api_key=api_key, base_url=base_url), model)

    @property
    def model(self) -> str:
        return self._model

    async def generate(
        self,
        prompt: str,
        *,
        system_instruction: str | None = None,
        history: list[ChatTurn] | None = None,
        temperature: float | None = None,
        operation: str = "generate",
    ) -> str:
        """Request a completion and return its text.

        Parameters
        ----------
        prompt : str
            The latest user message.
        system_instruction : str | None
            Optional system prompt.
        history : list[ChatTurn] | None
            Earlier conversation turns, oldest first.
        temperature : float | None
            Sampling temperature; service default if None.
        operation : str
            Label used for metrics and logs.

        Returns
        -------
        str
            The stripped completion text.

        Raises
        ------
        UpstreamUnavailableError
            If the service errors or returns empty text.
        """
        messages: list[dict[str, str]] = []
        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})
        for turn in history or []:
            messages.append({"role": turn.role, "content": turn.text})
        messages.append({"role": "user", "content": prompt})

        kwargs = {}
        if temperature is not None:
            kwargs["temperature"] = temperature

        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                **kwargs,
            )
        except OpenAIError as e:
            AI_REQUESTS.labels(operation=operation, status="error").inc()
            logger.error(
                "AI completion failed",
                extra={"operation": operation, "error": str(e)},
            )
            raise UpstreamUnavailableError(str(e)) from e

        text = ""
        if response.choices:
            text = (response.choices[0].message.content or "").strip()
        if not text:
            AI_REQUESTS.labels(operation=operation, status="empty").inc()
            raise UpstreamUnavailableError("AI service returned an empty completion")

        AI_REQUESTS.labels(operation=operation, status="ok").inc()
        return text
