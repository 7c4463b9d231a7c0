"""AI developer assistant."""

from .service import AssistantService, ChatMessage, InvalidAssistantRequest, parse_history

__all__ = ["AssistantService", "ChatMessage", "InvalidAssistantRequest", "parse_history"]
