"""Testing utilities and fakes for the image derivatives pipeline."""

from .fakes import (
    FakeHttpSession,
    FakeImageTool,
    FakeLogger,
    FakeResponse,
    FakeS3Client,
    S3Bucket,
    S3Object,
    create_test_image,
    setup_test_s3_environment,
)

__all__ = [
    "FakeS3Client",
    "FakeImageTool",
    "FakeHttpSession",
    "FakeResponse",
    "FakeLogger",
    "S3Object",
    "S3Bucket",
    "create_test_image",
    "setup_test_s3_environment",
]
