"""CLI entry point for project-history."""

import logging
from pathlib import Path

import click
import uvicorn

from .config import HistoryConfig
from .export import history_to_json, history_to_markdown
from .history import get_history


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log which sources were read.")
def main(verbose: bool):
    """Merge AI assistant chat history for a project from Cursor and Antigravity."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.option("--port", default=8080, help="Port to serve on.")
@click.option("--host", default="127.0.0.1", help="Host to bind to.")
def serve(port: int, host: str):
    """Start the history API."""
    click.echo(f"Starting project-history on http://{host}:{port}")
    uvicorn.run("project_history.server:app", host=host, port=port, reload=False)


@main.command()
@click.argument("project_path", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option(
    "--format", "fmt", type=click.Choice(["json", "md"]), default="json",
    help="Output format.",
)
def show(project_path: Path, fmt: str):
    """Print the merged history for PROJECT_PATH."""
    resolved = str(project_path.resolve())
    history = get_history(resolved, HistoryConfig.from_env())
    if fmt == "md":
        click.echo(history_to_markdown(history, resolved))
    else:
        click.echo(history_to_json(history))
