from __future__ import annotations

import logging

from newsfeed.db.models import NewsItem
from newsfeed.db.repository import NewsRepository
from newsfeed.services.errors import DuplicateItemError

logger = logging.getLogger(__name__)


class DedupeGate:
    """
    Keeps (guid, source) unique: a lookup before insert, and the table's unique
    constraint for the case where two ingestions of one source race.
    """

    def __init__(self, repository: NewsRepository) -> None:
        self.repository = repository

    def exists(self, guid: str, source_id: int) -> bool:
        return self.repository.find_item_by_guid_and_source(guid, source_id) is not None

    def persist(self, item: NewsItem) -> bool:
        """
        Store a new item. Returns False if a concurrent ingestion stored the same
        (guid, source) first.
        """
        try:
            self.repository.save_item(item)
        except DuplicateItemError as e:
            logger.info("Skipping duplicate item | guid=%s source_id=%s", e.guid, e.source_id)
            return False
        return True
