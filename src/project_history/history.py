"""Merge every history source for a project into one timeline."""

import logging
from typing import Optional

from .backends import get_sources
from .config import HistoryConfig
from .core import DateRange, HistoryResult
from .provider import HistorySource

logger = logging.getLogger(__name__)


def get_history(
    project_path: str,
    config: Optional[HistoryConfig] = None,
    sources: Optional[list[HistorySource]] = None,
) -> HistoryResult:
    """Collect, merge and order all known history for ``project_path``.

    Sources are tried one after another. A source that is unavailable or
    fails contributes nothing; this function does not raise. Messages are
    sorted by timestamp with ties kept in source order, so the result does
    not depend on which source happened to run first.
    """
    project_path = str(project_path)
    if sources is None:
        sources = get_sources(config or HistoryConfig.from_env())

    result = HistoryResult()
    for source in sources:
        try:
            if not source.is_available(project_path):
                continue
            contribution = source.collect(project_path)
        except Exception as e:
            logger.error("Source %s failed for %s: %s", source.name, project_path, e)
            continue

        if contribution.messages:
            result.messages.extend(contribution.messages)
            if source.name not in result.sources:
                result.sources.append(source.name)
        result.conversations.extend(contribution.conversations)

    result.messages.sort(key=lambda m: m.timestamp)
    result.total_messages = len(result.messages)
    if result.messages:
        result.date_range = DateRange(
            start=result.messages[0].timestamp,
            end=result.messages[-1].timestamp,
        )

    logger.info(
        "Found %d messages for %s from %s",
        result.total_messages, project_path, ", ".join(result.sources) or "no sources",
    )
    return result
