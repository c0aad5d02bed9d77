from pathlib import Path

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url

from newsfeed.config.settings import get_settings
from newsfeed.db.models import Base

_engine: Engine | None = None


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        s = get_settings()
        url = make_url(s.database_url)
        # sqlite won't create the parent directory of the db file
        if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        _engine = create_engine(s.database_url, future=True)
    return _engine


def init_db() -> None:
    """
    Create tables (idempotent) and verify connectivity.
    """
    engine = get_engine()

    # Create all tables
    Base.metadata.create_all(engine)

    # Connectivity check
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
