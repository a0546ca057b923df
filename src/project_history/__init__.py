"""Unified AI-assistant conversation history for a software project."""

from .config import HistoryConfig
from .core import Conversation, HistoryResult, Message, ToolCall
from .history import get_history

__all__ = [
    "Conversation",
    "HistoryConfig",
    "HistoryResult",
    "Message",
    "ToolCall",
    "get_history",
]
