from __future__ import annotations

import logging
from typing import Callable, Iterable

from newsfeed.db.models import NewsSource
from newsfeed.db.repository import NewsRepository
from newsfeed.models.schemas import BatchReport, SourceResult
from newsfeed.services.dispatch import IngestDispatcher
from newsfeed.services.errors import SourceNotFoundError
from newsfeed.services.rss_ingest import RssIngestor

logger = logging.getLogger(__name__)


def select_sources(repository: NewsRepository, source_id: int | None = None) -> list[NewsSource]:
    """
    One source by id (active or not), or every active source ordered by name.
    """
    if source_id is not None:
        source = repository.find_source_by_id(source_id)
        if source is None:
            raise SourceNotFoundError(source_id)
        return [source]
    return repository.find_active_sources()


def run_batch(
    ingestor: RssIngestor,
    sources: Iterable[NewsSource],
    on_result: Callable[[SourceResult], None] | None = None,
) -> BatchReport:
    """
    Ingest sources one after another. A failing source is recorded and the
    batch moves on.
    """
    report = BatchReport()

    for source in sources:
        # read before ingest: a failed commit expires the instance
        source_id, name = source.id, source.name
        try:
            count = ingestor.ingest(source)
            result = SourceResult(source_id=source_id, name=name, items=count)
        except Exception as e:
            ingestor.repository.rollback()
            result = SourceResult(source_id=source_id, name=name, error=str(e) or type(e).__name__)

        report.results.append(result)
        if on_result is not None:
            on_result(result)

    logger.info(
        "Batch completed | success=%s errors=%s total_items=%s",
        report.success_count,
        report.failure_count,
        report.total_items,
    )
    return report


def dispatch_sources(dispatcher: IngestDispatcher, sources: Iterable[NewsSource]) -> int:
    """Queue one ingest message per source. Returns the number queued."""
    queued = 0
    for source in sources:
        dispatcher.dispatch(source.id)
        queued += 1
    logger.info("Queued sources for async ingestion | count=%s", queued)
    return queued
