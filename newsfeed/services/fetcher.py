from __future__ import annotations

import logging
from urllib.parse import urlparse

import requests

from newsfeed.config.settings import get_settings
from newsfeed.services.errors import HttpStatusError, InvalidInput, TransportError

logger = logging.getLogger(__name__)


def validate_url(url: str | None) -> str:
    if not isinstance(url, str) or not url.strip():
        raise InvalidInput("Source URL is empty")
    url = url.strip()
    parts = urlparse(url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise InvalidInput(f"Source URL is not a valid http(s) URL: {url}")
    return url


class FeedFetcher:
    """
    Plain HTTP GET for feed documents. No retries: the batch loop decides what to do
    with a failed source.
    """

    def __init__(
        self,
        timeout: float | None = None,
        user_agent: str | None = None,
        session: requests.Session | None = None,
    ) -> None:
        s = get_settings()
        self.timeout = timeout if timeout is not None else s.fetch_timeout_seconds
        self.session = session or requests.Session()
        self.session.headers["User-Agent"] = user_agent or s.fetch_user_agent

    def fetch(self, url: str) -> bytes:
        url = validate_url(url)
        try:
            r = self.session.get(url, timeout=self.timeout)
        except requests.TooManyRedirects as e:
            status = e.response.status_code if e.response is not None else None
            raise HttpStatusError(url, status, reason="Too many redirects") from e
        except requests.Timeout as e:
            raise TransportError(f"Timed out after {self.timeout}s fetching {url}") from e
        except requests.RequestException as e:
            raise TransportError(f"Failed to fetch {url} ({e})") from e

        if not 200 <= r.status_code < 300:
            raise HttpStatusError(url, r.status_code)

        logger.debug("Fetched feed | url=%s status=%s bytes=%s", url, r.status_code, len(r.content))
        return r.content
