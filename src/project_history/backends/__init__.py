"""Registry of history sources, in the order they are merged."""

from ..config import HistoryConfig
from ..provider import HistorySource
from .artifacts import ArtifactSource
from .cursor_json import CursorJsonSource
from .export_markdown import ExportMarkdownSource
from .tracking_db import TrackingDatabaseSource
from .transcript import TranscriptSource

SOURCE_CLASSES = [
    TranscriptSource,
    TrackingDatabaseSource,
    CursorJsonSource,
    ExportMarkdownSource,
    ArtifactSource,
]


def get_sources(config: HistoryConfig) -> list[HistorySource]:
    """Instantiate every known source against ``config``."""
    return [SourceClass(config) for SourceClass in SOURCE_CLASSES]
