from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from newsfeed.config import settings as settings_module
from newsfeed.config.settings import Settings
from newsfeed.db import database
from newsfeed.db.models import Base
from newsfeed.db.repository import NewsRepository

FEEDS_DIR = Path(__file__).parent / "feeds"


class FakeFetcher:
    """Stands in for FeedFetcher: url -> bytes, or an exception to raise."""

    def __init__(self, responses: dict):
        self.responses = responses
        self.calls: list[str] = []

    def fetch(self, url: str) -> bytes:
        self.calls.append(url)
        value = self.responses[url]
        if isinstance(value, Exception):
            raise value
        return value


@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    s = Settings(database_url="sqlite://", log_file="")
    monkeypatch.setattr(settings_module, "_settings", s)
    return s


@pytest.fixture
def engine(monkeypatch):
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    monkeypatch.setattr(database, "_engine", engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture
def repository(session):
    return NewsRepository(session)


@pytest.fixture
def source(repository):
    return repository.add_source("Example", "https://ex.com/rss")


@pytest.fixture
def fake_fetcher():
    return FakeFetcher


@pytest.fixture
def feed():
    def _read(name: str) -> bytes:
        return (FEEDS_DIR / name).read_bytes()
    return _read
