"""Tests for the FastAPI server."""

import pytest
from httpx import ASGITransport, AsyncClient

from project_history.server import app


@pytest.fixture(autouse=True)
def use_test_config(history_config):
    """Point the server at the fixture directories for each test."""
    import project_history.server as srv
    srv._config = history_config
    yield
    srv._config = None


async def post_history(body):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.post("/api/history", json=body)


@pytest.mark.asyncio
async def test_history_empty_project(project_dir):
    resp = await post_history({"projectPath": str(project_dir)})
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["history"] == {
        "messages": [],
        "conversations": [],
        "totalMessages": 0,
        "sources": [],
        "dateRange": None,
    }


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{}, {"projectPath": ""}, {"projectPath": "   "}])
async def test_history_missing_path(body):
    resp = await post_history(body)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Project path is required"


@pytest.mark.asyncio
async def test_history_nonexistent_path(tmp_path):
    resp = await post_history({"projectPath": str(tmp_path / "nope")})
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Path does not exist"


@pytest.mark.asyncio
async def test_history_malformed_body():
    resp = await post_history({"projectPath": ["not", "a", "string"]})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_history_with_sources(project_dir, tmp_transcripts, tmp_cursor_json, tmp_brain):
    resp = await post_history({"projectPath": str(project_dir)})
    assert resp.status_code == 200
    history = resp.json()["history"]

    assert history["sources"] == ["cursor-transcript", "cursor-json", "antigravity-brain"]
    assert history["totalMessages"] == 11
    assert len(history["messages"]) == 11
    timestamps = [m["timestamp"] for m in history["messages"]]
    assert history["dateRange"] == {"start": timestamps[0], "end": timestamps[-1]}
    for msg in history["messages"]:
        assert {"id", "role", "content", "source", "relatedFiles", "toolCalls"} <= set(msg)
