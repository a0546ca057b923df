"""Cursor AI code tracking database backend.

Reads ~/.cursor/ai-tracking/ai-code-tracking.db read-only. The schema varies
between Cursor versions, so each known table is probed for and read by its
own rule; missing tables are skipped:

- conversation_summaries: one assistant message per summary row.
- scored_commits: one system message per commit touching the project.
"""

import logging
import sqlite3
from pathlib import Path

from ..core import Message, SourceResult
from ..normalize import (
    ASSISTANT,
    SYSTEM,
    extract_file_references,
    parse_timestamp,
    summarize_conversation,
    truncate,
)
from ..provider import HistorySource

logger = logging.getLogger(__name__)

SOURCE = "cursor-db"


class TrackingDatabaseSource(HistorySource):
    """Source for the Cursor AI tracking SQLite store."""

    name = SOURCE

    def collect(self, project_path: str) -> SourceResult:
        result = SourceResult()
        db_path = self.config.tracking_db_path
        if not db_path.exists():
            logger.debug("Tracking DB not found at %s", db_path)
            return result

        try:
            conn = sqlite3.connect(f"file:{db_path}?mode=ro", uri=True)
        except sqlite3.Error as e:
            logger.warning("Failed to open tracking DB %s: %s", db_path, e)
            return result

        try:
            conn.row_factory = sqlite3.Row
            tables = self._list_tables(conn)
            if "conversation_summaries" in tables:
                result.messages.extend(self._read_summaries(conn, project_path))
            if "scored_commits" in tables:
                result.messages.extend(self._read_commits(conn, project_path))
        except sqlite3.Error as e:
            logger.warning("Failed to read tracking DB %s: %s", db_path, e)
            return SourceResult()
        finally:
            conn.close()

        by_conversation: dict[str, list[Message]] = {}
        for msg in result.messages:
            if msg.conversation_id:
                by_conversation.setdefault(msg.conversation_id, []).append(msg)
        for conversation_id, messages in by_conversation.items():
            result.conversations.append(
                summarize_conversation(conversation_id, messages, SOURCE, "Conversation summary")
            )

        return result

    # ── Private helpers ──────────────────────────────────────────────

    def _list_tables(self, conn: sqlite3.Connection) -> set[str]:
        rows = conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'").fetchall()
        return {row["name"] for row in rows}

    def _select(
        self, conn: sqlite3.Connection, table: str, clause: str, fallback_clause: str, params: tuple
    ) -> list[sqlite3.Row]:
        """Select rows with their rowid as ``row_id``.

        WITHOUT ROWID tables have no rowid column; those are read with
        ``fallback_clause`` and their rows carry no ``row_id``.
        """
        try:
            return conn.execute(f"SELECT rowid AS row_id, * FROM {table} {clause}", params).fetchall()
        except sqlite3.OperationalError as e:
            if "rowid" not in str(e):
                raise
            logger.debug("Table %s has no rowid, reading without it", table)
            return conn.execute(f"SELECT * FROM {table} {fallback_clause}", params).fetchall()

    def _read_summaries(self, conn: sqlite3.Connection, project_path: str) -> list[Message]:
        """Most recent conversation summaries first."""
        try:
            rows = self._select(
                conn, "conversation_summaries",
                "ORDER BY rowid DESC LIMIT ?", "LIMIT ?",
                (self.config.summary_limit,),
            )
        except sqlite3.Error as e:
            logger.warning("Cannot read conversation_summaries: %s", e)
            return []

        messages = []
        for row in rows:
            data = dict(row)
            summary = data.get("summary")
            if not isinstance(summary, str) or not summary.strip():
                logger.debug("Skipping summary row %s without text", data.get("row_id"))
                continue

            conversation_id = data.get("conversation_id")
            messages.append(Message(
                id=f"db-summary-{data.get('row_id', len(messages))}",
                timestamp=parse_timestamp(data.get("timestamp")),
                role=ASSISTANT,
                content=truncate(summary),
                source=SOURCE,
                project_path=project_path,
                conversation_id=str(conversation_id) if conversation_id else None,
                model=data.get("model") if isinstance(data.get("model"), str) else None,
                related_files=extract_file_references(summary),
            ))
        return messages

    def _read_commits(self, conn: sqlite3.Connection, project_path: str) -> list[Message]:
        """Scored commits whose workspace path mentions the project's name."""
        try:
            clause = "WHERE workspace_path LIKE ? ORDER BY timestamp DESC LIMIT ?"
            rows = self._select(
                conn, "scored_commits", clause, clause,
                (f"%{Path(project_path).name}%", self.config.commit_limit),
            )
        except sqlite3.Error as e:
            logger.warning("Cannot read scored_commits: %s", e)
            return []

        messages = []
        for row in rows:
            data = dict(row)
            commit_message = data.get("commit_message")
            if not isinstance(commit_message, str) or not commit_message.strip():
                logger.debug("Skipping commit row %s without message", data.get("row_id"))
                continue

            score = data.get("score")
            content = f"Commit: {commit_message} (Score: {score if score is not None else 'N/A'})"
            messages.append(Message(
                id=f"db-commit-{data.get('row_id', len(messages))}",
                timestamp=parse_timestamp(data.get("timestamp")),
                role=SYSTEM,
                content=truncate(content),
                source=SOURCE,
                project_path=project_path,
                related_files=extract_file_references(commit_message),
            ))
        return messages
