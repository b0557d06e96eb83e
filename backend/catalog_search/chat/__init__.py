"""Conversational answers grounded in search results."""

from .answer import AnswerService, ChatAnswer, ConversationMessage

__all__ = ["AnswerService", "ChatAnswer", "ConversationMessage"]
