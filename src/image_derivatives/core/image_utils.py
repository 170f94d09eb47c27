"""Naming, geometry and metadata helpers for the derivative pipeline."""

import os
import re
from collections.abc import Iterable
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Tuple

from PIL import Image
from PIL.ExifTags import TAGS

_GEOMETRY_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)x(\d+(?:\.\d+)?)")
# Positional suffix such as "+0+0" or "-12+4"
_OFFSET_RE = re.compile(r"[+-]\d+[+-]\d+\s*$")


def round_half_up(value: float, places: int) -> float:
    """
    Round to ``places`` decimals, halves away from zero.

    Python's ``round`` uses banker's rounding on the binary float, which
    would turn 0.125 into 0.12; going through ``Decimal(str(value))``
    rounds the value as it prints.
    """
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def format_percent(scale_percent: float) -> str:
    """Render a scale as the resize argument, e.g. ``25.0`` -> ``"25.0%"``."""
    return f"{float(scale_percent)}%"


def parse_geometry(geometry: str) -> Tuple[float, float]:
    """
    Parse ``"<width>x<height>"`` with an optional positional suffix.

    Raises:
        ValueError: if no positive width and height can be read
    """
    stripped = _OFFSET_RE.sub("", geometry.strip())
    match = _GEOMETRY_RE.match(stripped)
    if not match:
        raise ValueError(f"Unparseable geometry: '{geometry}'")

    width, height = float(match.group(1)), float(match.group(2))
    if width <= 0 or height <= 0:
        raise ValueError(f"Non-positive geometry: '{geometry}'")
    return width, height


def split_filename(filename: str) -> Tuple[str, str]:
    """Split ``photo.JPG`` into ``("photo", ".JPG")``, keeping the case."""
    base = os.path.basename(filename)
    stem, extension = os.path.splitext(base)
    return stem, extension


def derivative_filename(
    base_filename: str, aspect_group: str, version_name: str, extension: str
) -> str:
    """Compose ``{base}-{aspect_group}-{version}{ext}``."""
    return f"{base_filename}-{aspect_group}-{version_name}{extension}"


def calculate_dest_key(filename: str, dest_prefix: str = "") -> str:
    """
    Calculate the destination key for a derivative.

    Args:
        filename: Local path or bare filename of the derivative
        dest_prefix: Optional key prefix in the destination bucket

    Returns:
        Destination S3 key
    """
    name = filename.split("/")[-1]
    if dest_prefix:
        return f"{dest_prefix.rstrip('/')}/{name}"
    return name


def extract_exif_data(img: Image.Image) -> Dict[str, str]:
    """
    Extract image info and EXIF tags as strings, dropping GPS data.

    Args:
        img: PIL Image to extract EXIF from

    Returns:
        Dictionary of string metadata
    """
    metadata: Dict[str, str] = {
        "Format": img.format or "unknown",
        "Mode": img.mode,
        "Geometry": f"{img.width}x{img.height}+0+0",
    }

    exif = img.getexif()
    for tag_id, value in exif.items():
        tag = TAGS.get(tag_id, tag_id)

        # Skip GPS data for privacy
        if "gps" in str(tag).lower():
            continue

        if isinstance(value, bytes):
            try:
                processed_value = value.decode("utf-8").rstrip("\x00")
            except UnicodeDecodeError:
                processed_value = str(value)
        elif isinstance(value, str):
            processed_value = value
        elif isinstance(value, Iterable):
            processed_value = str(tuple(value))
        else:
            processed_value = str(value)

        metadata[f"Exif:{tag}"] = processed_value

    return metadata
