"""Protocol definitions for dependency injection and testability."""

from typing import Any, Dict, Mapping, Optional, Protocol


class S3ClientProtocol(Protocol):
    """Protocol for the S3 client operations the pipeline uses."""

    def get_object(self, Bucket: str, Key: str) -> Dict[str, Any]:
        """Get object from S3."""
        ...

    def put_object(
        self, Bucket: str, Key: str, Body: bytes, ContentType: str
    ) -> Dict[str, Any]:
        """Put object to S3."""
        ...

    def head_object(self, Bucket: str, Key: str) -> Dict[str, Any]:
        """Read object metadata from S3."""
        ...


class ImageToolProtocol(Protocol):
    """Capability interface over an image probing and resizing backend."""

    def probe(self, path: str) -> Dict[str, str]:
        """Return raw metadata, including a ``Geometry`` entry."""
        ...

    def resize(self, source_path: str, scale_percent: float, destination_path: str) -> None:
        """Write a copy of ``source_path`` scaled by ``scale_percent``."""
        ...


class HttpResponseProtocol(Protocol):
    """The part of an HTTP response the notifier reads."""

    status_code: int
    text: str


class HttpSessionProtocol(Protocol):
    """Protocol for the HTTP session used by webhooks."""

    def post(
        self,
        url: str,
        data: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> HttpResponseProtocol:
        """Send a form-encoded POST request."""
        ...


class LoggerProtocol(Protocol):
    """Protocol for logging operations."""

    def debug(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log debug message."""
        ...

    def info(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log info message."""
        ...

    def warning(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log warning message."""
        ...

    def error(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log error message."""
        ...
