from __future__ import annotations

import logging
from typing import Callable

from sqlalchemy import select
from sqlalchemy.orm import Session

from newsfeed.config.settings import get_settings
from newsfeed.db.models import IngestMessage, utcnow
from newsfeed.db.repository import NewsRepository
from newsfeed.services.rss_ingest import RssIngestor

logger = logging.getLogger(__name__)


class IngestDispatcher:
    """
    Database-backed queue of "ingest source N" messages.

    Delivery is at-least-once: a message is marked delivered only after its handler
    returns, so a worker crash means the source gets ingested again.
    """

    def __init__(
        self,
        session: Session,
        ingestor_factory: Callable[[NewsRepository], RssIngestor] | None = None,
        queue_name: str | None = None,
    ) -> None:
        self.session = session
        self.repository = NewsRepository(session)
        self.ingestor_factory = ingestor_factory or RssIngestor
        self.queue_name = queue_name or get_settings().dispatch_queue

    def dispatch(self, source_id: int) -> IngestMessage:
        msg = IngestMessage(queue_name=self.queue_name, source_id=source_id)
        self.session.add(msg)
        self.session.commit()
        logger.debug("Dispatched ingest message | id=%s source_id=%s", msg.id, source_id)
        return msg

    def pending(self, limit: int) -> list[IngestMessage]:
        stmt = (
            select(IngestMessage)
            .where(
                IngestMessage.queue_name == self.queue_name,
                IngestMessage.delivered_at.is_(None),
                IngestMessage.available_at <= utcnow(),
            )
            .order_by(IngestMessage.id)
            .limit(limit)
            .with_for_update(skip_locked=True)
        )
        return list(self.session.scalars(stmt))

    def consume(self, limit: int | None = None) -> int:
        """Handle up to `limit` pending messages. Returns how many were handled."""
        limit = limit or get_settings().worker_batch_size
        messages = self.pending(limit)
        ids = [(m.id, m.source_id) for m in messages]
        # release the row locks before the long-running fetches
        self.session.commit()

        for msg_id, source_id in ids:
            self.handle(source_id)
            msg = self.session.get(IngestMessage, msg_id)
            msg.delivered_at = utcnow()
            self.session.commit()
        return len(ids)

    def handle(self, source_id: int) -> None:
        source = self.repository.find_source_by_id(source_id)
        if source is None:
            logger.error("News source not found | source_id=%s", source_id)
            return

        if not source.is_active:
            logger.info("News source is not active | source_id=%s name=%s", source.id, source.name)
            return

        name = source.name
        try:
            count = self.ingestor_factory(self.repository).ingest(source)
        except Exception as e:
            self.session.rollback()
            logger.exception("Ingestion failed | source_id=%s name=%s error=%s", source_id, name, e)
            return

        logger.info("Ingestion completed | source_id=%s name=%s items_count=%s", source_id, name, count)
