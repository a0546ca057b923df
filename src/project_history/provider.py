"""Abstract base class for history sources."""

from abc import ABC, abstractmethod

from .config import HistoryConfig
from .core import SourceResult


class HistorySource(ABC):
    """Base class for a single on-disk history format.

    Each source (transcripts, tracking DB, JSON files, Markdown exports,
    artifact directories) implements this interface and returns messages in
    the shared schema. Sources must not raise for absent or malformed data;
    they contribute an empty SourceResult instead.
    """

    name: str  # source tag stamped on every message it produces

    def __init__(self, config: HistoryConfig):
        self.config = config

    def is_available(self, project_path: str) -> bool:
        """Return True if this source should be attempted for the project."""
        return True

    @abstractmethod
    def collect(self, project_path: str) -> SourceResult:
        """Return all messages and conversations this source has for the project."""
        ...
