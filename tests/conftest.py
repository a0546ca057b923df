"""Shared test fixtures for project-history."""

import json
import sqlite3
from datetime import datetime, timezone

import pytest

from project_history.config import HistoryConfig
from project_history.resolver import project_folder_name

TRANSCRIPT = """user:
<user_query>Fix the crash in `src/parser.ts` when input is empty</user_query>

A:
[Thinking] The parser assumes at least one token.
[Tool call] read_file
  path: src/parser.ts
[Tool result]
  export function parse(tokens) { return tokens[0]; }
I added a guard for empty input in src/parser.ts.
The crash is fixed.

user:
Thanks, now run the tests

A:
[Tool call] run_terminal_cmd command: npm test
[Tool result]
"""

EXPORT_MARKDOWN = """# Chat Conversation

Note: _This is purely the output of the chat conversation and does not contain any raw data._

### User Input

Please add a dark mode toggle to @src/App.tsx

### Planner Response

*Listed directory [src](file:///home/dev/my-app/src)*

*Edited relevant file [App.tsx](file:///home/dev/my-app/src/App.tsx)*

I added a toggle button and a `theme.css` file with the dark palette.

### User Input

ok

### Planner Response

*User accepted the command `npm run build`*

*Searched web for react dark mode best practices*

The build passes and the toggle persists across reloads.
"""


@pytest.fixture
def history_config(tmp_path):
    """A configuration pointing every source at empty fixture directories."""
    return HistoryConfig(
        cursor_dir=tmp_path / "home" / ".cursor",
        antigravity_dir=tmp_path / "home" / ".gemini" / "antigravity",
        scan_timeout=10.0,
    )


@pytest.fixture
def project_dir(tmp_path):
    project = tmp_path / "dev" / "my-app"
    project.mkdir(parents=True)
    return project


@pytest.fixture
def tmp_transcripts(history_config, project_dir):
    """Create a Cursor agent-transcripts folder for the project."""
    transcripts = (
        history_config.cursor_projects_path
        / project_folder_name(str(project_dir))
        / "agent-transcripts"
    )
    transcripts.mkdir(parents=True)
    (transcripts / "chat-001.txt").write_text(TRANSCRIPT, encoding="utf-8")
    (transcripts / "notes.md").write_text("not a transcript", encoding="utf-8")
    return transcripts


@pytest.fixture
def tmp_tracking_db(history_config):
    """Create a tracking DB with summaries and scored commits."""
    db_path = history_config.tracking_db_path
    db_path.parent.mkdir(parents=True)

    conn = sqlite3.connect(str(db_path))
    conn.execute(
        "CREATE TABLE conversation_summaries "
        "(conversation_id TEXT, summary TEXT, timestamp INTEGER, model TEXT)"
    )
    conn.execute(
        "CREATE TABLE scored_commits "
        "(commit_hash TEXT, commit_message TEXT, workspace_path TEXT, score REAL, timestamp INTEGER)"
    )

    base_ms = int(datetime(2025, 3, 1, 9, 0, 0, tzinfo=timezone.utc).timestamp() * 1000)
    conn.executemany(
        "INSERT INTO conversation_summaries VALUES (?, ?, ?, ?)",
        [
            ("conv-a", "Refactored the parser to handle empty input", base_ms, "gpt-4o"),
            ("conv-a", "Added tests for `src/parser.ts`", base_ms + 60_000, None),
            ("conv-b", None, base_ms + 120_000, None),
        ],
    )
    conn.executemany(
        "INSERT INTO scored_commits VALUES (?, ?, ?, ?, ?)",
        [
            ("abc123", "Fix parser crash", "/home/dev/my-app", 0.8, base_ms + 180_000),
            ("def456", "Unrelated change", "/home/dev/other", 0.5, base_ms + 240_000),
            ("0a0b0c", "", "/home/dev/my-app", 0.1, base_ms + 300_000),
            ("999999", "Bump version", "/home/dev/my-app", None, base_ms + 360_000),
        ],
    )
    conn.commit()
    conn.close()
    return db_path


@pytest.fixture
def tmp_cursor_json(project_dir):
    """Create .cursor JSON files in several shapes."""
    cursor_dir = project_dir / ".cursor"
    (cursor_dir / "chats").mkdir(parents=True)

    nested = {
        "conversations": [
            {
                "title": "Auth",
                "messages": [
                    {"role": "human", "content": "Why does login fail?", "timestamp": 1740819600000},
                    {"role": "claude", "content": "The token check in `auth.py` is inverted.",
                     "timestamp": 1740819660, "model": "claude-3-5-sonnet"},
                ],
            }
        ]
    }
    (cursor_dir / "chats" / "session.json").write_text(json.dumps(nested), encoding="utf-8")

    root_array = [
        {"type": "user", "text": "Hello", "createdAt": "2025-03-01T08:00:00Z"},
        {"type": "ai", "text": "Hi, how can I help?", "createdAt": "2025-03-01T08:00:05Z"},
        {"type": "divider"},
    ]
    (cursor_dir / "bubbles.json").write_text(json.dumps(root_array), encoding="utf-8")

    (cursor_dir / "mcp.json").write_text(
        json.dumps({"messages": [{"role": "user", "content": "should be ignored"}]}),
        encoding="utf-8",
    )
    (cursor_dir / "broken.json").write_text("{not json", encoding="utf-8")
    return cursor_dir


@pytest.fixture
def tmp_export(project_dir):
    """Place an Antigravity export and an unrelated Markdown file in the project."""
    docs = project_dir / "docs"
    docs.mkdir()
    (docs / "Dark Mode Chat.md").write_text(EXPORT_MARKDOWN, encoding="utf-8")
    (project_dir / "README.md").write_text("# my-app\n\n### User Input\n", encoding="utf-8")

    ignored = project_dir / "node_modules" / "pkg"
    ignored.mkdir(parents=True)
    (ignored / "export.md").write_text(EXPORT_MARKDOWN, encoding="utf-8")
    return docs / "Dark Mode Chat.md"


@pytest.fixture
def tmp_brain(history_config):
    """Create Antigravity brain artifacts and annotations."""
    brain = history_config.brain_path
    conv = brain / "conv-123"
    conv.mkdir(parents=True)
    (conv / "task.md").write_text("# Task\n\n- [x] Update `src/App.tsx`\n", encoding="utf-8")
    (conv / "implementation_plan.md").write_text("# Plan\n\nAdd a theme provider.", encoding="utf-8")
    (conv / "task.md.resolved").write_text("resolved copy", encoding="utf-8")
    (conv / "task.metadata.md").write_text("metadata", encoding="utf-8")
    for i in range(7):
        (conv / f"screenshot_{i}.png").write_bytes(b"\x89PNG")

    empty = brain / "conv-empty"
    empty.mkdir()
    (empty / "notes.txt").write_text("nothing to see", encoding="utf-8")
    (brain / ".hidden").mkdir()

    annotations = history_config.annotations_path
    annotations.mkdir(parents=True)
    (annotations / "conv-123.pbtxt").write_text(
        "last_user_view_time:{seconds:1740830400 nanos:0}", encoding="utf-8"
    )
    return brain
