"""Antigravity brain artifact backend.

Reads ~/.gemini/antigravity/brain/<conversation-id>/, where each conversation
keeps Markdown artifacts (task lists, plans, walkthroughs) and screenshots.
The last time a conversation was viewed is recorded in
~/.gemini/antigravity/annotations/<conversation-id>.pbtxt as ``seconds:<n>``.
Chat transcripts themselves are stored encrypted and are not read.
"""

import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ..core import Message, SourceResult
from ..normalize import (
    ASSISTANT,
    extract_file_references,
    summarize_conversation,
    truncate,
    utcnow,
)
from ..provider import HistorySource

logger = logging.getLogger(__name__)

SOURCE = "antigravity-brain"

MAX_ARTIFACT_CONTENT = 1500
IMAGE_SUFFIXES = frozenset({".png", ".jpg", ".jpeg", ".webp", ".gif"})
EXCLUDED_MARKERS = (".resolved", ".metadata")
MAX_LISTED_IMAGES = 5
DEFAULT_TITLE = "Antigravity Session"

_SECONDS = re.compile(r"seconds:\s*(\d+)")


class ArtifactSource(HistorySource):
    """Source for Antigravity per-conversation artifact directories."""

    name = SOURCE

    def is_available(self, project_path: str) -> bool:
        return self.config.brain_path.is_dir()

    def collect(self, project_path: str) -> SourceResult:
        result = SourceResult()
        brain = self.config.brain_path
        try:
            conversation_dirs = sorted(
                d for d in brain.iterdir() if d.is_dir() and not d.name.startswith(".")
            )
        except OSError as e:
            logger.warning("Failed to list %s: %s", brain, e)
            return result

        for conversation_dir in conversation_dirs:
            try:
                messages, title = self._read_conversation(conversation_dir, project_path)
            except OSError as e:
                logger.debug("Skipping artifacts in %s: %s", conversation_dir, e)
                continue
            if not messages:
                continue

            result.messages.extend(messages)
            result.conversations.append(
                summarize_conversation(conversation_dir.name, messages, SOURCE, title)
            )

        return result

    # ── Private helpers ──────────────────────────────────────────────

    def _read_conversation(
        self, conversation_dir: Path, project_path: str
    ) -> tuple[list[Message], str]:
        """Return the conversation's messages and a title for it.

        The title is the first artifact's name, since artifacts carry no
        user messages.
        """
        conversation_id = conversation_dir.name
        timestamp = self._last_viewed(conversation_id) or utcnow()
        files = sorted(p for p in conversation_dir.iterdir() if p.is_file())

        messages = []
        title = DEFAULT_TITLE
        for path in files:
            if path.suffix.lower() != ".md" or any(m in path.name for m in EXCLUDED_MARKERS):
                continue
            try:
                body = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.debug("Could not read artifact %s: %s", path, e)
                continue

            artifact_type = path.stem
            if not messages:
                title = artifact_type
            messages.append(Message(
                id=f"{conversation_id}-artifact-{artifact_type}",
                timestamp=timestamp,
                role=ASSISTANT,
                content=f"[Artifact: {artifact_type}]\n\n{truncate(body, MAX_ARTIFACT_CONTENT)}",
                source=SOURCE,
                project_path=project_path,
                conversation_id=conversation_id,
                related_files=extract_file_references(body),
            ))

        images = [p.name for p in files if p.suffix.lower() in IMAGE_SUFFIXES]
        if images:
            listed = ", ".join(images[:MAX_LISTED_IMAGES])
            if len(images) > MAX_LISTED_IMAGES:
                listed += "..."
            messages.append(Message(
                id=f"{conversation_id}-screenshots",
                timestamp=timestamp,
                role=ASSISTANT,
                content=f"[Screenshots: {len(images)} images captured]\n{listed}",
                source=SOURCE,
                project_path=project_path,
                conversation_id=conversation_id,
            ))

        return messages, title

    def _last_viewed(self, conversation_id: str) -> Optional[datetime]:
        annotation = self.config.annotations_path / f"{conversation_id}.pbtxt"
        try:
            text = annotation.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return None

        match = _SECONDS.search(text)
        if not match:
            return None
        try:
            return datetime.fromtimestamp(int(match.group(1)), tz=timezone.utc)
        except (ValueError, OSError, OverflowError):
            return None
