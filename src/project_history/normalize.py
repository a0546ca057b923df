"""Shared normalization helpers used by every history source.

Sources must go through these functions for roles, timestamps, truncation and
file references so that the merged history stays consistent.
"""

import re
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from .core import Conversation, Message

USER = "user"
ASSISTANT = "assistant"
SYSTEM = "system"
TOOL = "tool"

ROLE_SYNONYMS = {
    "user": USER,
    "human": USER,
    "customer": USER,
    "you": USER,
    "assistant": ASSISTANT,
    "ai": ASSISTANT,
    "bot": ASSISTANT,
    "claude": ASSISTANT,
    "gpt": ASSISTANT,
    "model": ASSISTANT,
    "system": SYSTEM,
    "context": SYSTEM,
    "tool": TOOL,
    "function": TOOL,
    "action": TOOL,
}

TIMESTAMP_KEYS = ("timestamp", "created_at", "createdAt", "time", "date", "ts")

# Epoch values above this are milliseconds, below are seconds.
MILLISECONDS_THRESHOLD = 1e12

DEFAULT_MAX_CONTENT = 1000
ELLIPSIS = "..."

TITLE_LENGTH = 80
DEFAULT_TITLE = "Conversation"

PATH_EXTENSIONS = frozenset({
    "ts", "tsx", "js", "jsx", "mjs", "cjs",
    "css", "scss", "sass", "less", "html", "vue", "svelte",
    "json", "yaml", "yml", "toml", "md", "mdx",
    "py", "rb", "go", "rs", "java", "kt", "swift",
    "sh", "bash", "zsh", "sql", "graphql",
})
MAX_PATH_LENGTH = 150
FORBIDDEN_PATH_CHARS = re.compile(r'[<>"|?*]')

_BACKTICK_PATH = re.compile(r"`([^`]+\.[a-z]{1,10})`", re.IGNORECASE)
_MENTION_PATH = re.compile(r"@([\w\-./]+\.[a-z]{1,10})", re.IGNORECASE)
_BARE_PATH = re.compile(
    r"""(?:^|(?<=[\s"']))((?:\./|/|src/|lib/|app/)?[\w\-./]+\.[a-z]{1,10})(?=\s|$|[,.:;)"'])""",
    re.IGNORECASE | re.MULTILINE,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_role(value: Any) -> str:
    """Map a source-specific role label onto user/assistant/system/tool.

    Unknown or missing labels are treated as user messages.
    """
    if not isinstance(value, str):
        return USER
    return ROLE_SYNONYMS.get(value.strip().lower(), USER)


def coerce_timestamp(value: Any) -> Optional[datetime]:
    """Convert an epoch number or calendar string to an aware datetime.

    Numbers greater than 1e12 are read as milliseconds, smaller ones as
    seconds. Naive calendar strings are assumed to be UTC. Returns None when
    the value cannot be interpreted.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        seconds = value / 1000 if value > MILLISECONDS_THRESHOLD else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (ValueError, OSError, OverflowError):
            return None
    if isinstance(value, str):
        return _parse_iso(value)
    return None


def parse_timestamp(value: Any, now: Optional[datetime] = None) -> datetime:
    """Like coerce_timestamp, but falls back to ``now`` (default: current time)."""
    parsed = coerce_timestamp(value)
    if parsed is not None:
        return parsed
    return now or utcnow()


def find_timestamp(
    data: dict,
    keys: Iterable[str] = TIMESTAMP_KEYS,
    now: Optional[datetime] = None,
) -> datetime:
    """Return the first parseable timestamp among ``keys`` of ``data``."""
    for key in keys:
        parsed = coerce_timestamp(data.get(key))
        if parsed is not None:
            return parsed
    return now or utcnow()


def truncate(text: str, max_len: int = DEFAULT_MAX_CONTENT) -> str:
    """Cap text at max_len characters, marking the cut with an ellipsis."""
    if len(text) <= max_len:
        return text
    return text[:max_len] + ELLIPSIS


def is_likely_path(candidate: str) -> bool:
    if len(candidate) > MAX_PATH_LENGTH:
        return False
    if FORBIDDEN_PATH_CHARS.search(candidate):
        return False
    if "." not in candidate:
        return False
    extension = candidate.rsplit(".", 1)[1].lower()
    return extension in PATH_EXTENSIONS


def normalize_path(path: str) -> str:
    """Give a relative reference the leading-slash form used across sources."""
    if path.startswith("./"):
        return "/" + path[2:]
    if not path.startswith("/"):
        return "/" + path
    return path


def extract_file_references(text: str) -> set[str]:
    """Find file paths mentioned in message text.

    Three passes run independently: backtick spans, ``@`` mentions, and bare
    path-like tokens. Only candidates with a known source/doc/config
    extension survive.
    """
    if not text:
        return set()

    candidates = []
    candidates.extend(m.group(1) for m in _BACKTICK_PATH.finditer(text))
    candidates.extend(m.group(1) for m in _MENTION_PATH.finditer(text))
    candidates.extend(m.group(1) for m in _BARE_PATH.finditer(text))

    return {normalize_path(c.strip()) for c in candidates if is_likely_path(c.strip())}


def conversation_title(messages: list[Message], default: str = DEFAULT_TITLE) -> str:
    """Title a conversation after its first user message."""
    for msg in messages:
        if msg.role != USER:
            continue
        title = msg.content[:TITLE_LENGTH].replace("\n", " ").strip()
        if len(msg.content) > TITLE_LENGTH:
            title += ELLIPSIS
        return title
    return default


def summarize_conversation(
    conversation_id: str,
    messages: list[Message],
    source: str,
    default_title: str = DEFAULT_TITLE,
) -> Conversation:
    """Build the Conversation summary for a non-empty list of messages."""
    timestamps = [m.timestamp for m in messages]
    return Conversation(
        id=conversation_id,
        title=conversation_title(messages, default_title),
        message_count=len(messages),
        start_time=min(timestamps),
        end_time=max(timestamps),
        source=source,
    )


def _parse_iso(value: str) -> Optional[datetime]:
    """Parse an ISO 8601 datetime string."""
    value = value.strip()
    if not value:
        return None
    try:
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        parsed = datetime.fromisoformat(value)
    except (ValueError, TypeError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
