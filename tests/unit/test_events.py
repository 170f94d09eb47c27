"""Tests for parse_trigger_event."""

import pytest

from image_derivatives.core.events import parse_trigger_event
from image_derivatives.core.exceptions import EventError


def make_event(*keys, bucket="photos-private"):
    return {
        "Records": [
            {"s3": {"bucket": {"name": bucket}, "object": {"key": key}}} for key in keys
        ]
    }


def test_single_record():
    source, ignored = parse_trigger_event(make_event("uploads/photo.jpg"))

    assert source.bucket_name == "photos-private"
    assert source.object_key == "uploads/photo.jpg"
    assert ignored == 0


def test_extra_records_are_counted():
    source, ignored = parse_trigger_event(
        make_event("uploads/a.jpg", "uploads/b.jpg", "uploads/c.jpg")
    )

    assert source.object_key == "uploads/a.jpg"
    assert ignored == 2


@pytest.mark.parametrize(
    "raw,decoded",
    [
        ("uploads/my+holiday+photo.jpg", "uploads/my holiday photo.jpg"),
        ("uploads/caf%C3%A9.jpg", "uploads/café.jpg"),
        ("uploads/a%2Bb.jpg", "uploads/a+b.jpg"),
    ],
)
def test_key_is_url_decoded(raw, decoded):
    source, _ = parse_trigger_event(make_event(raw))

    assert source.object_key == decoded


@pytest.mark.parametrize(
    "event",
    [
        {},
        {"Records": []},
        {"Records": "not a list"},
        {"Records": ["not a record"]},
        {"Records": [{"s3": {"bucket": {"name": "photos-private"}}}]},
        {"Records": [{"s3": {"object": {"key": "uploads/photo.jpg"}}}]},
        {"Records": [{"s3": "garbage"}]},
        {"Records": [{"s3": {"bucket": "photos-private", "object": {"key": "a.jpg"}}}]},
        {"Records": [{"s3": {"bucket": {"name": "photos-private"}, "object": "a.jpg"}}]},
        {"Records": [{"s3": {"bucket": {"name": "photos-private"}, "object": {"key": 123}}}]},
        {"Records": [{"s3": {"bucket": {"name": ["photos-private"]}, "object": {"key": "a.jpg"}}}]},
    ],
)
def test_unusable_events(event):
    with pytest.raises(EventError):
        parse_trigger_event(event)


def test_non_mapping_event():
    with pytest.raises(EventError, match="mapping"):
        parse_trigger_event(["uploads/photo.jpg"])
