"""Tests for the command-line interface."""

import json
from unittest.mock import patch

from click.testing import CliRunner

from project_history.cli import main


def test_show_json(history_config, project_dir, tmp_cursor_json):
    runner = CliRunner()
    with patch("project_history.cli.HistoryConfig.from_env", return_value=history_config):
        result = runner.invoke(main, ["show", str(project_dir)])

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["totalMessages"] == 4
    assert data["sources"] == ["cursor-json"]


def test_show_markdown(history_config, project_dir, tmp_export):
    runner = CliRunner()
    with patch("project_history.cli.HistoryConfig.from_env", return_value=history_config):
        result = runner.invoke(main, ["show", str(project_dir), "--format", "md"])

    assert result.exit_code == 0, result.output
    assert result.output.startswith(f"# History: {project_dir.resolve()}")
    assert "**Sources:** antigravity-export" in result.output
    assert "Please add a dark mode toggle" in result.output


def test_show_missing_path(tmp_path):
    runner = CliRunner()
    result = runner.invoke(main, ["show", str(tmp_path / "missing")])
    assert result.exit_code != 0


def test_serve_runs_uvicorn():
    runner = CliRunner()
    with patch("project_history.cli.uvicorn.run") as run:
        result = runner.invoke(main, ["serve", "--port", "9000"])

    assert result.exit_code == 0, result.output
    run.assert_called_once_with(
        "project_history.server:app", host="127.0.0.1", port=9000, reload=False
    )
