class IngestionError(Exception):
    """Base class for failures while ingesting a news source."""


class InvalidInput(IngestionError, ValueError):
    """Raised when a source URL is missing or not a usable http(s) URL."""


class TransportError(IngestionError):
    """Raised when a feed cannot be fetched (network, DNS, TLS, timeout)."""


class HttpStatusError(TransportError):
    """Raised when the feed server answers with a non-2xx status."""

    def __init__(self, url: str, status_code: int | None, reason: str | None = None) -> None:
        super().__init__(f"{reason or f'HTTP {status_code}'} while fetching {url}")
        self.url = url
        self.status_code = status_code


class EmptyResponseError(IngestionError):
    """Raised when the feed server returns an empty body."""


class MalformedFeedError(IngestionError):
    """Raised when the feed body is not well-formed XML."""


class DuplicateItemError(IngestionError):
    """Raised when an item with the same (guid, source) was stored concurrently."""

    def __init__(self, guid: str, source_id: int) -> None:
        super().__init__(f"Item {guid!r} already stored for source {source_id}")
        self.guid = guid
        self.source_id = source_id


class SourceNotFoundError(IngestionError, LookupError):
    def __init__(self, source_id: int) -> None:
        super().__init__(f"News source {source_id} not found")
        self.source_id = source_id
