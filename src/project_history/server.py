"""FastAPI web server for project-history."""

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from .config import HistoryConfig
from .export import history_to_dict
from .history import get_history

logger = logging.getLogger(__name__)

app = FastAPI(title="project-history", version="0.1.0")

# Config cache (populated on first request)
_config: HistoryConfig | None = None


def _get_config() -> HistoryConfig:
    """Lazily build and cache the configuration."""
    global _config
    if _config is None:
        _config = HistoryConfig.from_env()
        logger.info(
            "Reading Cursor data from %s, Antigravity data from %s",
            _config.cursor_dir, _config.antigravity_dir,
        )
    return _config


class HistoryRequest(BaseModel):
    projectPath: Optional[str] = None


# ── Routes ───────────────────────────────────────────────────────


@app.post("/api/history")
async def post_history(request: HistoryRequest):
    """Return the merged history for a project (all sources)."""
    if not request.projectPath or not request.projectPath.strip():
        raise HTTPException(status_code=400, detail="Project path is required")

    resolved = Path(request.projectPath).expanduser().resolve()
    if not resolved.exists():
        raise HTTPException(status_code=404, detail="Path does not exist")

    logger.info("Getting history for %s", resolved)
    history = get_history(str(resolved), _get_config())
    return {"success": True, "history": history_to_dict(history)}
