from __future__ import annotations

from newsfeed.db.repository import NewsRepository

DEFAULT_SOURCES = [
    {
        "name": "Лента.ру",
        "url": "https://lenta.ru/rss/google-newsstand/main/",
        "description": "Главные новости от Лента.ру",
    },
    {
        "name": "РИА Новости",
        "url": "https://ria.ru/export/rss2/index.xml?page_type=google_newsstand",
        "description": "Новости от РИА Новости",
    },
    {
        "name": "РБК",
        "url": "https://rssexport.rbc.ru/rbcnews/news/30/full.rss",
        "description": "Новости от РБК",
    },
    {
        "name": "ТАСС",
        "url": "https://tass.ru/rss/v2.xml",
        "description": "Новости от ТАСС",
    },
    {
        "name": "Правительство РФ",
        "url": "http://government.ru/all/rss/",
        "description": "Новости от Правительства РФ",
    },
]


def seed_sources(repository: NewsRepository, sources: list[dict] | None = None) -> int:
    """Add the default sources, skipping URLs that are already configured."""
    added = 0
    for data in sources or DEFAULT_SOURCES:
        if repository.find_source_by_url(data["url"]) is not None:
            continue
        repository.add_source(data["name"], data["url"], description=data.get("description"))
        added += 1
    return added
