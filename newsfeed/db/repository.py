from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from newsfeed.db.models import NewsItem, NewsSource
from newsfeed.services.errors import DuplicateItemError


class NewsRepository:
    """
    Persistence for sources and items on top of one SQLAlchemy session.

    Every save commits immediately: one transaction per item, one per source update.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    # --- sources ---

    def find_source_by_id(self, source_id: int) -> NewsSource | None:
        return self.session.get(NewsSource, source_id)

    def find_active_sources(self) -> list[NewsSource]:
        stmt = (
            select(NewsSource)
            .where(NewsSource.is_active.is_(True))
            .order_by(NewsSource.name.asc())
        )
        return list(self.session.scalars(stmt))

    def find_sources(self) -> list[NewsSource]:
        return list(self.session.scalars(select(NewsSource).order_by(NewsSource.id)))

    def find_source_by_url(self, url: str) -> NewsSource | None:
        return self.session.scalars(
            select(NewsSource).where(NewsSource.url == url)
        ).first()

    def add_source(
        self,
        name: str,
        url: str,
        description: str | None = None,
        country: str = "rus",
        is_active: bool = True,
    ) -> NewsSource:
        source = NewsSource(
            name=name,
            url=url,
            description=description,
            country=country,
            is_active=is_active,
        )
        return self.save_source(source)

    def save_source(self, source: NewsSource) -> NewsSource:
        self.session.add(source)
        self.session.commit()
        return source

    # --- items ---

    def find_item_by_guid_and_source(self, guid: str, source_id: int) -> NewsItem | None:
        stmt = select(NewsItem).where(
            NewsItem.guid == guid,
            NewsItem.source_id == source_id,
        )
        return self.session.scalars(stmt).first()

    def find_latest_items(self, limit: int = 50) -> list[NewsItem]:
        stmt = (
            select(NewsItem)
            .join(NewsItem.source)
            .where(NewsSource.is_active.is_(True))
            .order_by(NewsItem.published_at.desc())
            .limit(limit)
        )
        return list(self.session.scalars(stmt))

    def find_items_by_source(self, source: NewsSource, limit: int = 50) -> list[NewsItem]:
        stmt = (
            select(NewsItem)
            .where(NewsItem.source_id == source.id)
            .order_by(NewsItem.published_at.desc())
            .limit(limit)
        )
        return list(self.session.scalars(stmt))

    def save_item(self, item: NewsItem) -> NewsItem:
        """
        Insert a new item and commit.

        Raises DuplicateItemError if the (guid, source) pair was stored by someone
        else in the meantime; other integrity errors propagate unchanged.
        """
        self.session.add(item)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            if self.find_item_by_guid_and_source(item.guid, item.source_id) is not None:
                raise DuplicateItemError(item.guid, item.source_id)
            raise
        return item

    def rollback(self) -> None:
        self.session.rollback()
