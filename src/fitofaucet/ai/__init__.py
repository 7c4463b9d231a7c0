"""Generative-AI integration."""

from .client import ChatTurn, TextGenerator, UpstreamUnavailableError

__all__ = ["ChatTurn", "TextGenerator", "UpstreamUnavailableError"]
