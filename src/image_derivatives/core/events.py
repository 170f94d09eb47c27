"""Parsing of S3 object-created notifications."""

import urllib.parse
from typing import Any, Dict, Tuple

from pydantic import ValidationError

from .exceptions import EventError
from .models import SourceObjectRef


def parse_trigger_event(event: Dict[str, Any]) -> Tuple[SourceObjectRef, int]:
    """
    Extract the source object from the first record of an S3 event.

    Returns:
        The source reference and the number of further records ignored

    Raises:
        EventError: if the event carries no usable record
    """
    if not isinstance(event, dict):
        raise EventError(f"Event must be a mapping, got {type(event).__name__}")

    records = event.get("Records") or []
    if not isinstance(records, list) or not records:
        raise EventError("Event contains no records")

    record = records[0]
    if not isinstance(record, dict):
        raise EventError(f"Record must be a mapping, got {type(record).__name__}")

    s3_info = _section(record, "s3")
    bucket = _section(s3_info, "bucket").get("name", "")
    key = _section(s3_info, "object").get("key", "")
    if not isinstance(bucket, str) or not isinstance(key, str):
        raise EventError("Record bucket name and object key must be strings")
    # Keys arrive URL-encoded, spaces as "+"
    key = urllib.parse.unquote_plus(key)

    try:
        source = SourceObjectRef(bucket_name=bucket, object_key=key)
    except ValidationError as e:
        raise EventError(f"Record is missing bucket or key: {e}") from e

    return source, len(records) - 1


def _section(mapping: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = mapping.get(name) or {}
    if not isinstance(value, dict):
        raise EventError(f"Record field '{name}' must be a mapping")
    return value
