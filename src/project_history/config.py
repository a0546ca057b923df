"""Platform-aware path resolution for assistant data directories."""

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

# Tracking database location relative to the .cursor directory.
TRACKING_DB_RELPATH = Path("ai-tracking") / "ai-code-tracking.db"


def get_cursor_path() -> Path:
    """Return the path to Cursor's per-user ``.cursor`` directory."""
    env = os.environ.get("PROJECT_HISTORY_CURSOR_PATH")
    if env:
        return Path(env)

    if sys.platform == "win32":
        return Path(os.environ.get("USERPROFILE", "")) / ".cursor"
    else:  # macOS and Linux
        return Path.home() / ".cursor"


def get_tracking_db_path(cursor_path: Path) -> Path:
    """Return the path to Cursor's AI code tracking database."""
    env = os.environ.get("PROJECT_HISTORY_TRACKING_DB")
    if env:
        return Path(env)

    return cursor_path / TRACKING_DB_RELPATH


def get_antigravity_path() -> Path:
    """Return the path to Antigravity's data directory."""
    env = os.environ.get("PROJECT_HISTORY_ANTIGRAVITY_PATH")
    if env:
        return Path(env)

    if sys.platform == "win32":
        return Path(os.environ.get("USERPROFILE", "")) / ".gemini" / "antigravity"
    else:  # macOS and Linux
        return Path.home() / ".gemini" / "antigravity"


@dataclass
class HistoryConfig:
    """Locations and limits used by a single history ingestion.

    Built once at the entry point and handed to every source, so tests can
    point the whole pipeline at fixture directories.
    """

    cursor_dir: Path
    antigravity_dir: Path
    tracking_db_path: Optional[Path] = None
    scan_timeout: float = 30.0  # seconds per directory walk
    summary_limit: int = 100
    commit_limit: int = 50

    def __post_init__(self):
        self.cursor_dir = Path(self.cursor_dir)
        self.antigravity_dir = Path(self.antigravity_dir)
        if self.tracking_db_path is None:
            self.tracking_db_path = self.cursor_dir / TRACKING_DB_RELPATH
        else:
            self.tracking_db_path = Path(self.tracking_db_path)

    @property
    def cursor_projects_path(self) -> Path:
        return self.cursor_dir / "projects"

    @property
    def brain_path(self) -> Path:
        return self.antigravity_dir / "brain"

    @property
    def annotations_path(self) -> Path:
        return self.antigravity_dir / "annotations"

    @classmethod
    def from_env(cls) -> "HistoryConfig":
        """Build the default configuration for this machine."""
        cursor_dir = get_cursor_path()
        return cls(
            cursor_dir=cursor_dir,
            antigravity_dir=get_antigravity_path(),
            tracking_db_path=get_tracking_db_path(cursor_dir),
        )
