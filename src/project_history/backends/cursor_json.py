"""Generic JSON backend for <project>/.cursor/**/*.json.

These files come from several tools and versions and have no fixed shape.
Message lists are found in two steps:

1. Match one of the recognized envelopes:
   - root:   ``[{...}, {...}]``
   - keyed:  ``{"messages": [{...}]}`` (any allow-listed key)
   - nested: ``{"conversations": [{"messages": [{...}]}]}``
2. If none matches, walk the document (depth-bounded) and collect every
   array found under an allow-listed key.

Each list is tagged with the path where it was found, e.g.
``conversations[0].messages``; the path becomes part of message and
conversation ids.
"""

import json
import logging
from pathlib import Path
from typing import Any, Iterator, Optional

from ..core import Message, SourceResult
from ..normalize import (
    extract_file_references,
    find_timestamp,
    normalize_role,
    summarize_conversation,
    truncate,
)
from ..provider import HistorySource
from ..resolver import DEFAULT_IGNORE_DIRS, ScanTimeout, walk_files

logger = logging.getLogger(__name__)

SOURCE = "cursor-json"

MESSAGE_KEYS = (
    "messages", "history", "conversations", "tabs", "chats",
    "chat_history", "chatHistory", "data", "items", "entries",
    "bubbles", "exchanges", "turns",
)
ROLE_KEYS = ("role", "author", "sender", "type")
CONTENT_KEYS = ("content", "text", "message", "body")
IGNORED_FILES = frozenset({"mcp.json"})

MAX_DEPTH = 6
ROOT_PATH = "root"


class CursorJsonSource(HistorySource):
    """Source for JSON chat dumps inside a project's .cursor directory."""

    name = SOURCE

    def collect(self, project_path: str) -> SourceResult:
        result = SourceResult()
        cursor_dir = Path(project_path) / ".cursor"
        if not cursor_dir.is_dir():
            return result

        try:
            files = list(walk_files(
                cursor_dir, {".json"}, DEFAULT_IGNORE_DIRS, timeout=self.config.scan_timeout
            ))
        except ScanTimeout as e:
            logger.warning("Giving up on %s: %s", cursor_dir, e)
            return result

        for path in files:
            if path.name in IGNORED_FILES:
                continue
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, json.JSONDecodeError, RecursionError) as e:
                logger.debug("Could not parse JSON %s: %s", path, e)
                continue

            file_result = parse_json_document(data, path.stem, project_path=project_path)
            result.messages.extend(file_result.messages)
            result.conversations.extend(file_result.conversations)

        return result


def parse_json_document(
    data: Any,
    file_id: str,
    project_path: Optional[str] = None,
) -> SourceResult:
    """Extract messages and one conversation per discovered message list."""
    result = SourceResult()

    for path, items in discover_message_lists(data):
        conversation_id = file_id if path == ROOT_PATH else f"{file_id}:{path}"
        messages = []
        for index, item in enumerate(items):
            if not is_message(item):
                continue
            messages.append(_to_message(item, f"{file_id}-{path}-{index}", conversation_id, project_path))

        if messages:
            result.messages.extend(messages)
            result.conversations.append(
                summarize_conversation(conversation_id, messages, SOURCE)
            )

    return result


def is_message(item: Any) -> bool:
    """An object with non-empty text under one of the content keys.

    Role is optional and defaults to user when absent.
    """
    return isinstance(item, dict) and _first_string(item, CONTENT_KEYS) is not None


def discover_message_lists(data: Any) -> list[tuple[str, list]]:
    """Return (path, list) pairs that look like message lists.

    Every known envelope shape contributes; the generic walk only runs when
    none of them matched.
    """
    found = []
    seen = set()
    for matcher in (_match_root, _match_keyed, _match_nested):
        for path, items in matcher(data):
            if path not in seen:
                seen.add(path)
                found.append((path, items))
    return found or list(_walk(data, "", 0))


# ── Envelope matchers ────────────────────────────────────────────


def _has_messages(value: Any) -> bool:
    return isinstance(value, list) and any(is_message(item) for item in value)


def _match_root(data: Any) -> list[tuple[str, list]]:
    if _has_messages(data):
        return [(ROOT_PATH, data)]
    return []


def _match_keyed(data: Any) -> list[tuple[str, list]]:
    if not isinstance(data, dict):
        return []
    return [(key, data[key]) for key in MESSAGE_KEYS if _has_messages(data.get(key))]


def _match_nested(data: Any) -> list[tuple[str, list]]:
    if not isinstance(data, dict):
        return []

    found = []
    for key in MESSAGE_KEYS:
        wrappers = data.get(key)
        if not isinstance(wrappers, list):
            continue
        for index, wrapper in enumerate(wrappers):
            if not isinstance(wrapper, dict):
                continue
            for inner in MESSAGE_KEYS:
                if _has_messages(wrapper.get(inner)):
                    found.append((f"{key}[{index}].{inner}", wrapper[inner]))
    return found


def _walk(data: Any, prefix: str, depth: int) -> Iterator[tuple[str, list]]:
    """Generic fallback: collect arrays under allow-listed keys, recursively."""
    if depth > MAX_DEPTH:
        return

    if isinstance(data, list):
        if depth == 0:
            yield ROOT_PATH, data
        for index, item in enumerate(data):
            if isinstance(item, dict):
                yield from _walk(item, f"{prefix or ROOT_PATH}[{index}]", depth + 1)
        return

    if not isinstance(data, dict):
        return

    for key in MESSAGE_KEYS:
        if isinstance(data.get(key), list):
            yield _join(prefix, key), data[key]

    for key, value in data.items():
        if isinstance(value, dict):
            yield from _walk(value, _join(prefix, key), depth + 1)
        elif isinstance(value, list) and value and isinstance(value[0], dict):
            for index, item in enumerate(value):
                if isinstance(item, dict):
                    yield from _walk(item, f"{_join(prefix, key)}[{index}]", depth + 1)


def _join(prefix: str, key: str) -> str:
    return f"{prefix}.{key}" if prefix else key


# ── Message conversion ───────────────────────────────────────────


def _first_string(item: dict, keys: tuple[str, ...]) -> Optional[str]:
    for key in keys:
        value = item.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None


def _to_message(
    item: dict,
    message_id: str,
    conversation_id: str,
    project_path: Optional[str],
) -> Message:
    content = _first_string(item, CONTENT_KEYS) or ""
    model = item.get("model")
    return Message(
        id=message_id,
        timestamp=find_timestamp(item),
        role=normalize_role(_first_string(item, ROLE_KEYS)),
        content=truncate(content),
        source=SOURCE,
        project_path=project_path,
        conversation_id=conversation_id,
        model=model if isinstance(model, str) else None,
        related_files=extract_file_references(content),
    )
