"""Core data models for project-history."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class ToolCall:
    """A tool invocation recovered from message text."""

    name: str
    arguments: Optional[dict] = None


@dataclass
class Message:
    """A single normalized message from any source."""

    id: str  # unique within its source file/conversation
    timestamp: datetime  # always timezone-aware, may be synthetic
    role: str  # "user" | "assistant" | "system" | "tool"
    content: str
    source: str  # "cursor-transcript" | "cursor-db" | "cursor-json" | "antigravity-export" | "antigravity-brain"
    project_path: Optional[str] = None
    conversation_id: Optional[str] = None
    model: Optional[str] = None
    tool_calls: Optional[list[ToolCall]] = None
    related_files: set[str] = field(default_factory=set)
    thinking: Optional[str] = None


@dataclass
class Conversation:
    """Summary of one conversation contributed by a source."""

    id: str
    title: str
    message_count: int
    start_time: datetime
    end_time: datetime
    source: str


@dataclass
class DateRange:
    start: datetime
    end: datetime


@dataclass
class SourceResult:
    """What a single source contributes to a history."""

    messages: list[Message] = field(default_factory=list)
    conversations: list[Conversation] = field(default_factory=list)


@dataclass
class HistoryResult:
    """Merged, chronologically ordered history for a project."""

    messages: list[Message] = field(default_factory=list)
    conversations: list[Conversation] = field(default_factory=list)
    total_messages: int = 0
    sources: list[str] = field(default_factory=list)
    date_range: Optional[DateRange] = None
