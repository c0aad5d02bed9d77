from __future__ import annotations

import logging
from pathlib import Path
from newsfeed.config.settings import get_settings


def setup_logging() -> None:
    s = get_settings()
    log_path = getattr(s, "log_file", "logs/ingest.log")

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_path:
        Path(log_path).parent.mkdir(parents=True, exist_ok=True)
        handlers.insert(0, logging.FileHandler(log_path, encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, s.log_level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        handlers=handlers,
    )
