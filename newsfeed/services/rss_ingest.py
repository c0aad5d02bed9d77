from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Protocol

from newsfeed.db.models import NewsItem, NewsSource
from newsfeed.db.repository import NewsRepository
from newsfeed.services.dedup import DedupeGate
from newsfeed.services.errors import EmptyResponseError, InvalidInput, SourceNotFoundError
from newsfeed.services.fetcher import FeedFetcher
from newsfeed.services.normalizer import normalize
from newsfeed.services.parser import FeedNode, parse_feed

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    def fetch(self, url: str) -> bytes: ...


class RssIngestor:
    """
    Fetch one source's feed and store the items we haven't seen yet.

    Safe to run repeatedly (and concurrently) for the same source: known
    (guid, source) pairs are skipped, never updated.
    """

    def __init__(self, repository: NewsRepository, fetcher: Fetcher | None = None) -> None:
        self.repository = repository
        self.fetcher = fetcher or FeedFetcher()
        self.gate = DedupeGate(repository)

    def ingest(self, source: NewsSource) -> int:
        source_id, url = source.id, source.url
        logger.info("Ingestion started | source_id=%s name=%s url=%s", source_id, source.name, url)

        try:
            if not url or not url.strip():
                raise InvalidInput(f"News source {source_id} has no URL")

            content = self.fetcher.fetch(url)
            if not content:
                raise EmptyResponseError(f"Empty response from {url}")

            nodes = parse_feed(content)
        except Exception as e:
            logger.error("Ingestion failed | source_id=%s url=%s error=%s", source_id, url, e)
            raise

        inserted = 0
        for node in nodes:
            try:
                if self._ingest_node(node, source):
                    inserted += 1
            except Exception as e:
                self.repository.rollback()
                logger.warning("Item skipped | source_id=%s error=%s", source_id, e)

        source.last_parsed_at = datetime.now(timezone.utc)
        self.repository.save_source(source)

        logger.info("Ingestion completed | source_id=%s items_processed=%s", source_id, inserted)
        return inserted

    def _ingest_node(self, node: FeedNode, source: NewsSource) -> bool:
        entry = normalize(node)
        if entry is None:
            return False

        if self.gate.exists(entry.guid, source.id):
            return False

        item = NewsItem(source_id=source.id, **entry.model_dump())
        return self.gate.persist(item)

    def ingest_by_id(self, source_id: int) -> int:
        source = self.repository.find_source_by_id(source_id)
        if source is None:
            raise SourceNotFoundError(source_id)
        return self.ingest(source)
