"""Locate per-source storage for a project path.

Assistant tools name their per-project folders after the project's absolute
path, but not always consistently. The resolver tries the exact naming
transform first and falls back to a fuzzy containment match.
"""

import logging
import os
import re
import time
from pathlib import Path
from typing import Iterable, Iterator, Optional

logger = logging.getLogger(__name__)

DEFAULT_IGNORE_DIRS = frozenset({
    "node_modules", ".git", "dist", "build", "venv", "__pycache__", "target",
})

EXACT_MATCH_LEVELS = 5  # the project folder plus four parents

_SEPARATORS = re.compile(r"[\\/]+")


class ScanTimeout(Exception):
    """A directory walk exceeded its wall-clock budget."""


def path_segments(project_path: str) -> list[str]:
    return [p for p in _SEPARATORS.split(str(project_path)) if p]


def project_folder_name(project_path: str) -> str:
    """Cursor's folder name for a project: /home/me/app -> home-me-app."""
    return "-".join(path_segments(project_path))


def resolve_project_dirs(project_path: str, base_dir: Path) -> list[Path]:
    """Return candidate storage directories for ``project_path`` under ``base_dir``.

    An exact match on the naming transform wins outright, trying the project
    itself and then up to four of its parents, nearest first. Otherwise every
    child whose lowercased name contains the last two path segments joined by
    ``-``, or any single segment, is returned; conjunction matches rank first.
    Never raises: an unreadable or missing base directory gives no candidates.
    """
    base_dir = Path(base_dir)
    segments = path_segments(project_path)
    if not segments:
        return []

    try:
        for depth in range(min(EXACT_MATCH_LEVELS, len(segments))):
            exact = base_dir / "-".join(segments[:len(segments) - depth])
            if exact.is_dir():
                return [exact]

        if not base_dir.is_dir():
            return []
        children = sorted(d for d in base_dir.iterdir() if d.is_dir())
    except OSError as e:
        logger.debug("Cannot scan %s: %s", base_dir, e)
        return []

    last_two = "-".join(segments[-2:]).lower()
    lowered = [s.lower() for s in segments]

    strong, weak = [], []
    for child in children:
        name = child.name.lower()
        if last_two in name:
            strong.append(child)
        elif any(s in name for s in lowered):
            weak.append(child)

    matches = strong + weak
    if matches:
        logger.debug("Fuzzy matched %s to %s", project_path, [m.name for m in matches])
    return matches


def walk_files(
    root: Path,
    suffixes: Iterable[str],
    ignore_dirs: Iterable[str] = DEFAULT_IGNORE_DIRS,
    timeout: Optional[float] = None,
) -> Iterator[Path]:
    """Yield files below ``root`` whose suffix is in ``suffixes``.

    Directories named in ``ignore_dirs`` are pruned. When ``timeout`` seconds
    elapse before the walk finishes, ScanTimeout is raised.
    """
    suffixes = {s.lower() for s in suffixes}
    ignore_dirs = set(ignore_dirs)
    deadline = time.monotonic() + timeout if timeout is not None else None

    for dirpath, dirnames, filenames in os.walk(root):
        if deadline is not None and time.monotonic() > deadline:
            raise ScanTimeout(f"Scanning {root} took longer than {timeout}s")

        dirnames[:] = sorted(d for d in dirnames if d not in ignore_dirs)
        for filename in sorted(filenames):
            if Path(filename).suffix.lower() in suffixes:
                yield Path(dirpath) / filename
