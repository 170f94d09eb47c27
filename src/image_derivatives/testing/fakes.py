"""Fake implementations for testing purposes."""

import io
import os
import time
from typing import Any, Dict, List, Mapping, Optional, Set
from dataclasses import dataclass, field

from PIL import Image


@dataclass
class S3Object:
    """Fake S3 object for testing."""

    key: str
    body: bytes
    content_type: str = "image/jpeg"
    size: int = 0

    def __post_init__(self):
        if self.size == 0:
            self.size = len(self.body)


@dataclass
class S3Bucket:
    """Fake S3 bucket for testing."""

    name: str
    objects: Dict[str, S3Object] = field(default_factory=dict)

    def add_object(
        self, key: str, body: bytes, content_type: str = "image/jpeg"
    ) -> None:
        """Add object to bucket."""
        self.objects[key] = S3Object(key=key, body=body, content_type=content_type)

    def get_object(self, key: str) -> Optional[S3Object]:
        """Get object from bucket."""
        return self.objects.get(key)


class FakeS3Client:
    """Fake S3 client for testing."""

    def __init__(self):
        self.buckets: Dict[str, S3Bucket] = {}
        self.operations: List[str] = []
        self.should_fail = False
        self.failure_message = "Simulated S3 failure"
        self.failing_operations: Set[str] = set()
        self.drop_puts = False
        self.truncate_puts = False

    def create_bucket(self, name: str) -> S3Bucket:
        """Create a new bucket."""
        bucket = S3Bucket(name=name)
        self.buckets[name] = bucket
        return bucket

    def get_bucket(self, name: str) -> Optional[S3Bucket]:
        """Get bucket by name."""
        return self.buckets.get(name)

    def set_failure_mode(
        self,
        should_fail: bool,
        message: str = "Simulated failure",
        operations: Optional[Set[str]] = None,
    ) -> None:
        """
        Configure failure mode for testing error handling.

        With ``operations`` only the named client methods fail.
        """
        self.should_fail = should_fail
        self.failure_message = message
        self.failing_operations = set(operations or ())

    def _check_failure(self, operation: str) -> None:
        self.operations.append(operation)
        if self.should_fail and (
            not self.failing_operations or operation in self.failing_operations
        ):
            raise Exception(self.failure_message)

    def _bucket(self, name: str) -> S3Bucket:
        bucket = self.buckets.get(name)
        if not bucket:
            raise Exception(f"Bucket {name} not found")
        return bucket

    def get_object(self, Bucket: str, Key: str) -> Dict[str, Any]:
        """Get object from S3."""
        self._check_failure("get_object")
        obj = self._bucket(Bucket).get_object(Key)
        if not obj:
            raise Exception(f"Object {Key} not found in bucket {Bucket}")

        return {
            "Body": io.BytesIO(obj.body),
            "ContentType": obj.content_type,
            "ContentLength": obj.size,
        }

    def put_object(
        self, Bucket: str, Key: str, Body: bytes, ContentType: str
    ) -> Dict[str, Any]:
        """
        Put object to S3.

        ``drop_puts`` acknowledges without storing; ``truncate_puts``
        stores only half of the body.
        """
        self._check_failure("put_object")
        bucket = self._bucket(Bucket)

        if not self.drop_puts:
            body = Body[: len(Body) // 2] if self.truncate_puts else Body
            bucket.add_object(Key, body, ContentType)

        return {
            "ETag": f'"fake-etag-{Key}"',
            "ResponseMetadata": {"HTTPStatusCode": 200},
        }

    def head_object(self, Bucket: str, Key: str) -> Dict[str, Any]:
        """Read object metadata from S3."""
        self._check_failure("head_object")
        obj = self._bucket(Bucket).get_object(Key)
        if not obj:
            raise Exception(f"Object {Key} not found in bucket {Bucket}")

        return {"ContentType": obj.content_type, "ContentLength": obj.size}


class FakeImageTool:
    """
    Fake image tool reporting a fixed geometry.

    ``resize`` writes a small marker file unless the version's output path
    contains one of ``failing_versions``.
    """

    def __init__(
        self,
        geometry: str = "1600x2000+0+0",
        metadata: Optional[Dict[str, str]] = None,
        failing_versions: Optional[Set[str]] = None,
        probe_error: Optional[Exception] = None,
    ):
        self.geometry = geometry
        self.metadata = dict(metadata or {"Format": "JPEG"})
        self.failing_versions = set(failing_versions or ())
        self.probe_error = probe_error
        self.probe_calls: List[str] = []
        self.resize_calls: List[Dict[str, Any]] = []

    def probe(self, path: str) -> Dict[str, str]:
        self.probe_calls.append(path)
        if self.probe_error is not None:
            raise self.probe_error
        metadata = dict(self.metadata)
        if self.geometry:
            metadata["Geometry"] = self.geometry
        return metadata

    def resize(self, source_path: str, scale_percent: float, destination_path: str) -> None:
        self.resize_calls.append(
            {
                "source_path": source_path,
                "scale_percent": scale_percent,
                "destination_path": destination_path,
            }
        )
        name = os.path.splitext(os.path.basename(destination_path))[0]
        if any(name.endswith(f"-{version}") for version in self.failing_versions):
            return
        with open(destination_path, "wb") as fh:
            fh.write(f"resized {scale_percent}%".encode())


@dataclass
class FakeResponse:
    """Fake HTTP response for testing."""

    status_code: int = 201
    text: str = ""


class FakeHttpSession:
    """Fake HTTP session recording form posts."""

    def __init__(self, status_code: int = 201, error: Optional[Exception] = None):
        self.status_code = status_code
        self.error = error
        self.requests: List[Dict[str, Any]] = []

    def post(
        self,
        url: str,
        data: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> FakeResponse:
        self.requests.append({"url": url, "data": dict(data or {}), "timeout": timeout})
        if self.error is not None:
            raise self.error
        return FakeResponse(status_code=self.status_code, text=f"status {self.status_code}")


class FakeLogger:
    """Fake logger for testing with support for LogContext."""

    def __init__(self, name: str = "test_logger"):
        self.name = name
        self.logs: List[Dict[str, Any]] = []

    def _log(
        self, level: str, message: str, context: Any = None, **kwargs: Any
    ) -> None:
        """Internal logging method with context support."""
        log_entry = {
            "level": level,
            "message": message,
            "timestamp": time.time(),
            **kwargs,
        }

        if context is not None:
            if hasattr(context, "correlation_id"):
                log_entry["correlation_id"] = context.correlation_id
            if hasattr(context, "operation"):
                log_entry["operation"] = context.operation
            if hasattr(context, "metadata"):
                log_entry.update(context.metadata)

        self.logs.append(log_entry)

    def debug(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log debug message."""
        self._log("DEBUG", message, context, **kwargs)

    def info(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log info message."""
        self._log("INFO", message, context, **kwargs)

    def warning(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log warning message."""
        self._log("WARNING", message, context, **kwargs)

    def error(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log error message."""
        self._log("ERROR", message, context, **kwargs)

    def get_logs(self, level: Optional[str] = None) -> List[Dict[str, Any]]:
        """Get logged messages, optionally filtered by level."""
        if level:
            return [log for log in self.logs if log["level"] == level]
        return self.logs.copy()

    def clear_logs(self) -> None:
        """Clear all logged messages."""
        self.logs.clear()


def create_test_image(
    width: int = 100, height: int = 100, image_format: str = "JPEG"
) -> bytes:
    """Create a test image in memory."""
    image = Image.new("RGB", (width, height), color="red")

    # Blue blocks so resizing has something to resample
    for x in range(0, width, 20):
        for y in range(0, height, 20):
            if (x + y) % 40 == 0:
                image.paste((0, 0, 255), (x, y, min(x + 10, width), min(y + 10, height)))

    img_bytes = io.BytesIO()
    image.save(img_bytes, format=image_format)
    return img_bytes.getvalue()


def setup_test_s3_environment() -> FakeS3Client:
    """Set up source and destination buckets with sample photos."""
    s3_client = FakeS3Client()

    source_bucket = s3_client.create_bucket("photos-private")
    source_bucket.add_object("uploads/photo.jpg", create_test_image(160, 200))
    source_bucket.add_object("uploads/square.jpg", create_test_image(200, 200))
    source_bucket.add_object("uploads/wide.png", create_test_image(250, 200, "PNG"), "image/png")
    source_bucket.add_object("uploads/panorama.jpg", create_test_image(300, 200))
    source_bucket.add_object("uploads/empty.jpg", b"")
    source_bucket.add_object("uploads/readme.txt", b"This is not an image", "text/plain")

    s3_client.create_bucket("photos-public")

    return s3_client
