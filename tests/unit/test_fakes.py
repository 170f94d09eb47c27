"""Tests for the fake implementations used throughout the suite."""

import io

import pytest
from PIL import Image

from image_derivatives.testing.fakes import (
    FakeHttpSession,
    FakeImageTool,
    FakeLogger,
    FakeS3Client,
    create_test_image,
    setup_test_s3_environment,
)


class TestFakeS3Client:
    """Tests for FakeS3Client."""

    def test_put_get_head(self):
        client = FakeS3Client()
        client.create_bucket("bucket")

        client.put_object(Bucket="bucket", Key="a.jpg", Body=b"data", ContentType="image/jpeg")

        assert client.get_object(Bucket="bucket", Key="a.jpg")["Body"].read() == b"data"
        assert client.head_object(Bucket="bucket", Key="a.jpg") == {
            "ContentType": "image/jpeg",
            "ContentLength": 4,
        }
        assert client.operations == ["put_object", "get_object", "head_object"]

    def test_missing_bucket_and_object(self):
        client = FakeS3Client()
        client.create_bucket("bucket")

        with pytest.raises(Exception, match="Bucket other not found"):
            client.get_object(Bucket="other", Key="a.jpg")
        with pytest.raises(Exception, match="Object a.jpg not found"):
            client.head_object(Bucket="bucket", Key="a.jpg")

    def test_failure_mode_limited_to_operations(self):
        client = setup_test_s3_environment()
        client.set_failure_mode(True, "Throttled", operations={"head_object"})

        client.get_object(Bucket="photos-private", Key="uploads/photo.jpg")
        with pytest.raises(Exception, match="Throttled"):
            client.head_object(Bucket="photos-private", Key="uploads/photo.jpg")

    def test_failure_mode_all_operations(self):
        client = setup_test_s3_environment()
        client.set_failure_mode(True, "Offline")

        with pytest.raises(Exception, match="Offline"):
            client.get_object(Bucket="photos-private", Key="uploads/photo.jpg")

    def test_dropped_and_truncated_puts(self):
        client = FakeS3Client()
        bucket = client.create_bucket("bucket")

        client.drop_puts = True
        client.put_object(Bucket="bucket", Key="a.jpg", Body=b"12345678", ContentType="image/jpeg")
        assert bucket.get_object("a.jpg") is None

        client.drop_puts = False
        client.truncate_puts = True
        client.put_object(Bucket="bucket", Key="a.jpg", Body=b"12345678", ContentType="image/jpeg")
        assert bucket.get_object("a.jpg").body == b"1234"


class TestFakeImageTool:
    """Tests for FakeImageTool."""

    def test_probe(self):
        tool = FakeImageTool(geometry="10x20+0+0")

        assert tool.probe("/tmp/a.jpg") == {"Format": "JPEG", "Geometry": "10x20+0+0"}
        assert tool.probe_calls == ["/tmp/a.jpg"]

    def test_resize_writes_marker(self, tmp_path):
        destination = tmp_path / "a-portrait-thumbnail.jpg"

        FakeImageTool().resize("/tmp/a.jpg", 25.0, str(destination))

        assert destination.read_bytes() == b"resized 25.0%"

    def test_failing_version_writes_nothing(self, tmp_path):
        destination = tmp_path / "a-portrait-thumbnail.jpg"

        FakeImageTool(failing_versions={"thumbnail"}).resize("/tmp/a.jpg", 25.0, str(destination))

        assert not destination.exists()


class TestFakeHttpSession:
    """Tests for FakeHttpSession."""

    def test_records_requests(self):
        session = FakeHttpSession(status_code=401)

        response = session.post("https://api.example.com/x", data={"a": "b"}, timeout=3)

        assert response.status_code == 401
        assert session.requests == [
            {"url": "https://api.example.com/x", "data": {"a": "b"}, "timeout": 3}
        ]

    def test_raises_configured_error(self):
        session = FakeHttpSession(error=ConnectionError("down"))

        with pytest.raises(ConnectionError):
            session.post("https://api.example.com/x")
        assert len(session.requests) == 1


class TestFakeLogger:
    """Tests for FakeLogger."""

    def test_levels_and_clear(self):
        logger = FakeLogger()
        logger.info("one")
        logger.error("two", key="value")

        assert [log["message"] for log in logger.get_logs()] == ["one", "two"]
        assert logger.get_logs("ERROR")[0]["key"] == "value"

        logger.clear_logs()
        assert logger.get_logs() == []


def test_create_test_image():
    data = create_test_image(30, 40, "PNG")

    with Image.open(io.BytesIO(data)) as image:
        assert image.size == (30, 40)
        assert image.format == "PNG"


def test_environment_sample_photos():
    client = setup_test_s3_environment()

    assert set(client.buckets) == {"photos-private", "photos-public"}
    assert "uploads/photo.jpg" in client.get_bucket("photos-private").objects
    assert client.get_bucket("photos-public").objects == {}
