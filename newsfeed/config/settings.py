from dotenv import load_dotenv
from pydantic import BaseModel, Field
import os

load_dotenv()

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; NewsParser/1.0)"


def _to_int(v: str | None, default: int) -> int:
    if v is None or not v.strip():
        return default
    return int(v.strip())

def _to_float(v: str | None, default: float) -> float:
    if v is None or not v.strip():
        return default
    return float(v.strip())


class Settings(BaseModel):
    database_url: str = Field(default="sqlite:///data/newsfeed.db")

    log_level: str = Field(default="INFO")
    log_file: str = Field(default="logs/ingest.log")

    fetch_timeout_seconds: float = Field(default=30.0)
    fetch_user_agent: str = Field(default=DEFAULT_USER_AGENT)

    dispatch_queue: str = Field(default="ingest")
    worker_poll_seconds: float = Field(default=5.0)
    worker_batch_size: int = Field(default=10)


_settings: Settings | None = None

def get_settings() -> Settings:
    global _settings
    if _settings is not None:
        return _settings

    _settings = Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///data/newsfeed.db"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_file=os.getenv("LOG_FILE", "logs/ingest.log"),
        fetch_timeout_seconds=_to_float(os.getenv("FETCH_TIMEOUT_SECONDS"), 30.0),
        fetch_user_agent=os.getenv("FETCH_USER_AGENT") or DEFAULT_USER_AGENT,
        dispatch_queue=os.getenv("DISPATCH_QUEUE", "ingest"),
        worker_poll_seconds=_to_float(os.getenv("WORKER_POLL_SECONDS"), 5.0),
        worker_batch_size=_to_int(os.getenv("WORKER_BATCH_SIZE"), 10),
    )
    return _settings
