"""Antigravity exported-conversation backend.

Antigravity can export a chat as Markdown. Exports are found anywhere in the
project tree and recognized by containing both a ``### User Input`` and a
``### Planner Response`` heading. Agent actions appear as lines wrapped in
single asterisks, for example::

    *User accepted the command `npm test`*
    *Edited relevant file [src/app.ts]*

Exports carry no timestamps; messages are spaced one second apart from the
time of parsing.
"""

import logging
import re
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

from ..core import Message, SourceResult, ToolCall
from ..normalize import (
    ASSISTANT,
    USER,
    extract_file_references,
    summarize_conversation,
    truncate,
    utcnow,
)
from ..provider import HistorySource
from ..resolver import DEFAULT_IGNORE_DIRS, ScanTimeout, walk_files

logger = logging.getLogger(__name__)

SOURCE = "antigravity-export"

USER_HEADER = "### User Input"
ASSISTANT_HEADER = "### Planner Response"

MIN_MESSAGE_LENGTH = 10
MAX_CONTENT = 2000
TIME_STEP = timedelta(seconds=1)

_USER_HEADER = re.compile(r"^### User Input\s*$")
_ASSISTANT_HEADER = re.compile(r"^### Planner Response\s*$")
_ACTION = re.compile(r"^\*(?!\*)(.+?)(?<!\*)\*\s*$")

_ACCEPTED_COMMAND = re.compile(r"User accepted the command `(.+)`")
_BRACKETED = re.compile(r"\[([^\]]+)\]")
_SEARCHED_WEB = re.compile(r"Searched web for (.+)")


def is_export(text: str) -> bool:
    return USER_HEADER in text and ASSISTANT_HEADER in text


class ExportMarkdownSource(HistorySource):
    """Source for Antigravity Markdown exports inside the project."""

    name = SOURCE

    def is_available(self, project_path: str) -> bool:
        return Path(project_path).is_dir()

    def collect(self, project_path: str) -> SourceResult:
        result = SourceResult()
        for path in self._find_exports(Path(project_path)):
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.debug("Could not read export %s: %s", path, e)
                continue

            conversation_id = re.sub(r"\s+", "-", path.stem).lower()
            messages = parse_export(text, conversation_id, project_path=project_path)
            if not messages:
                continue

            result.messages.extend(messages)
            result.conversations.append(
                summarize_conversation(conversation_id, messages, SOURCE)
            )
        return result

    def _find_exports(self, project_dir: Path) -> list[Path]:
        exports = []
        try:
            for path in walk_files(
                project_dir, {".md"}, DEFAULT_IGNORE_DIRS, timeout=self.config.scan_timeout
            ):
                try:
                    text = path.read_text(encoding="utf-8")
                except (OSError, UnicodeDecodeError):
                    continue
                if is_export(text):
                    exports.append(path)
        except ScanTimeout as e:
            logger.warning("Giving up on exports in %s: %s", project_dir, e)
            return []
        return exports


def parse_export(
    text: str,
    conversation_id: str,
    project_path: Optional[str] = None,
    now: Optional[datetime] = None,
) -> list[Message]:
    """Split an export into messages at each role heading.

    Text before the first heading (the export's title block) is dropped.
    Blocks whose text is too short to be meaningful are skipped.
    """
    timestamp = now or utcnow()
    messages = []
    role = None
    content_lines: list[str] = []
    actions: list[str] = []

    def flush():
        nonlocal timestamp
        if role is None:
            return
        content = "\n".join(content_lines).strip()
        if len(content) <= MIN_MESSAGE_LENGTH:
            return
        tool_calls = parse_actions(actions)
        messages.append(Message(
            id=f"{conversation_id}-{len(messages)}",
            timestamp=timestamp,
            role=role,
            content=truncate(content, MAX_CONTENT),
            source=SOURCE,
            project_path=project_path,
            conversation_id=conversation_id,
            tool_calls=tool_calls or None,
            related_files=extract_file_references(content),
        ))
        timestamp += TIME_STEP

    for line in text.splitlines():
        if _USER_HEADER.match(line):
            flush()
            role, content_lines, actions = USER, [], []
            continue
        if _ASSISTANT_HEADER.match(line):
            flush()
            role, content_lines, actions = ASSISTANT, [], []
            continue

        action = _ACTION.match(line)
        if action:
            actions.append(action.group(1))
            continue

        content_lines.append(line)

    flush()
    return messages


def parse_actions(actions: list[str]) -> list[ToolCall]:
    """Turn ``*...*`` action lines into tool calls where recognized."""
    tool_calls = []
    for action in actions:
        command = _ACCEPTED_COMMAND.search(action)
        if command:
            tool_calls.append(ToolCall(name="run_command", arguments={"command": command.group(1)}))
            continue

        if "Edited" in action:
            target = _BRACKETED.search(action)
            if target:
                tool_calls.append(ToolCall(name="edit_file", arguments={"file": target.group(1)}))
            continue

        if "Listed directory" in action:
            target = _BRACKETED.search(action)
            if target:
                tool_calls.append(ToolCall(name="list_dir", arguments={"path": target.group(1)}))
            continue

        query = _SEARCHED_WEB.search(action)
        if query:
            tool_calls.append(ToolCall(name="search_web", arguments={"query": query.group(1)}))
    return tool_calls
