"""Cursor agent transcript backend.

Reads plain-text transcripts from
~/.cursor/projects/<project-folder>/agent-transcripts/*.txt, one conversation
per file::

    user:
    <user_query>Fix the bug</user_query>

    A:
    [Thinking] consider the parser first
    [Tool call] read_file
      path: src/parser.ts
    [Tool result] ...
    Done, the parser now handles empty input.

Transcripts carry no wall-clock times, so messages get synthetic timestamps
that only preserve order within a file.
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
from ..resolver import resolve_project_dirs

logger = logging.getLogger(__name__)

SOURCE = "cursor-transcript"

USER_MARKERS = ("user:",)
ASSISTANT_MARKERS = ("A:", "assistant:")
SECTION_MARKERS = ("[Thinking]", "[Tool call]", "[Tool result]")

MAX_CONTENT_LINES = 10
MAX_QUERY_LENGTH = 1000
MAX_THINKING_LENGTH = 500
PLACEHOLDER = "[Tool operations]"

TIME_STEP = timedelta(minutes=1)
BASE_OFFSET = timedelta(hours=1)

_USER_QUERY = re.compile(r"<user_query>(.*?)</user_query>", re.DOTALL)
_THINKING = re.compile(
    r"\[Thinking\](.*?)(?=\[Tool call\]|\[Tool result\]|\n[A-Za-z]|\Z)",
    re.DOTALL | re.IGNORECASE,
)
_TOOL_CALL = re.compile(r"^\s*\[Tool call\]\s*(\w+)(.*)$", re.IGNORECASE)
_TOOL_ARG = re.compile(r"^\s*(\w+):\s*(.+)$")


class TranscriptSource(HistorySource):
    """Source for Cursor agent transcript files."""

    name = SOURCE

    def collect(self, project_path: str) -> SourceResult:
        result = SourceResult()
        project_dirs = resolve_project_dirs(project_path, self.config.cursor_projects_path)
        if not project_dirs:
            logger.debug("No transcript folder for %s", project_path)
            return result

        for project_dir in project_dirs:
            transcripts_dir = project_dir / "agent-transcripts"
            if not transcripts_dir.is_dir():
                continue
            self._read_transcripts_dir(transcripts_dir, project_path, result)

        return result

    # ── Private helpers ──────────────────────────────────────────────

    def _read_transcripts_dir(
        self, transcripts_dir: Path, project_path: str, result: SourceResult
    ) -> None:
        try:
            files = sorted(transcripts_dir.glob("*.txt"))
        except OSError as e:
            logger.warning("Failed to list %s: %s", transcripts_dir, e)
            return

        for path in files:
            conversation_id = path.stem
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.debug("Could not read transcript %s: %s", path, e)
                continue

            messages = parse_transcript(text, conversation_id, project_path=project_path)
            if not messages:
                continue

            result.messages.extend(messages)
            result.conversations.append(
                summarize_conversation(conversation_id, messages, SOURCE)
            )


def parse_transcript(
    text: str,
    conversation_id: str,
    project_path: Optional[str] = None,
    now: Optional[datetime] = None,
) -> list[Message]:
    """Parse one transcript file into messages.

    Lines are classified by a small state machine: ``user:`` switches into a
    user block, ``A:`` into an assistant block. Anything before the first
    marker is ignored.
    """
    base_time = (now or utcnow()) - BASE_OFFSET
    messages = []

    for role, lines in _split_blocks(text):
        index = len(messages)
        timestamp = base_time + index * TIME_STEP

        if role == USER:
            content = _extract_user_query(lines)
            if not content:
                continue
            messages.append(Message(
                id=f"{conversation_id}-user-{index}",
                timestamp=timestamp,
                role=USER,
                content=content,
                source=SOURCE,
                project_path=project_path,
                conversation_id=conversation_id,
                related_files=extract_file_references(content),
            ))
        else:
            content, thinking, tool_calls = _extract_assistant_block(lines)
            messages.append(Message(
                id=f"{conversation_id}-assistant-{index}",
                timestamp=timestamp,
                role=ASSISTANT,
                content=content,
                source=SOURCE,
                project_path=project_path,
                conversation_id=conversation_id,
                tool_calls=tool_calls or None,
                related_files=extract_file_references(content),
                thinking=thinking,
            ))

    return messages


def _split_blocks(text: str) -> list[tuple[str, list[str]]]:
    """Group lines into (role, lines) blocks; marker text is stripped off."""
    blocks = []
    role = None  # idle until the first marker
    lines: list[str] = []

    for line in text.splitlines():
        marker_role, rest = _match_marker(line)
        if marker_role is not None:
            if role is not None:
                blocks.append((role, lines))
            role = marker_role
            lines = [rest] if rest.strip() else []
            continue
        if role is not None:
            lines.append(line)

    if role is not None:
        blocks.append((role, lines))
    return blocks


def _match_marker(line: str) -> tuple[Optional[str], str]:
    for marker in USER_MARKERS:
        if line.startswith(marker):
            return USER, line[len(marker):]
    for marker in ASSISTANT_MARKERS:
        if line.startswith(marker):
            return ASSISTANT, line[len(marker):]
    return None, line


def _extract_user_query(lines: list[str]) -> str:
    block = "\n".join(lines)
    match = _USER_QUERY.search(block)
    if match:
        return truncate(match.group(1).strip(), MAX_QUERY_LENGTH)
    return truncate(block.strip(), MAX_QUERY_LENGTH)


def _extract_assistant_block(lines: list[str]) -> tuple[str, Optional[str], list[ToolCall]]:
    block = "\n".join(lines)

    thinking = None
    match = _THINKING.search(block)
    if match:
        thinking = match.group(1).strip()[:MAX_THINKING_LENGTH] or None

    tool_calls = _extract_tool_calls(lines)

    content_lines = []
    in_tool_section = False
    for line in lines:
        stripped = line.strip()
        if stripped.startswith(SECTION_MARKERS):
            in_tool_section = True
            continue
        # Indented lines continue the current tool's arguments or output.
        if in_tool_section and stripped and not stripped.startswith("[") and line == line.lstrip():
            in_tool_section = False
        if not in_tool_section and stripped and not stripped.startswith("["):
            content_lines.append(stripped)

    content = " ".join(content_lines[:MAX_CONTENT_LINES]).strip()
    if not content:
        content = next(
            (l.strip() for l in lines if l.strip() and not l.strip().startswith("[")),
            PLACEHOLDER,
        )
    return truncate(content, MAX_QUERY_LENGTH), thinking, tool_calls


def _extract_tool_calls(lines: list[str]) -> list[ToolCall]:
    """Read ``[Tool call] name`` markers and their ``key: value`` arguments.

    Arguments may follow the name on the marker line and continue on the
    following lines until the first line that is not a ``key: value`` pair.
    """
    tool_calls = []
    i = 0
    while i < len(lines):
        match = _TOOL_CALL.match(lines[i])
        i += 1
        if not match:
            continue

        arguments = {}
        inline = _TOOL_ARG.match(match.group(2))
        if inline:
            arguments[inline.group(1)] = inline.group(2).strip()

        while i < len(lines):
            arg = _TOOL_ARG.match(lines[i])
            if not arg or lines[i].strip().startswith("["):
                break
            arguments[arg.group(1)] = arg.group(2).strip()
            i += 1

        tool_calls.append(ToolCall(name=match.group(1), arguments=arguments or None))
    return tool_calls
