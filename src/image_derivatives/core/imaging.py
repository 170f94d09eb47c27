"""Image tool implementations: the ImageMagick binary and Pillow."""

import os
import subprocess
from typing import Dict, List, Optional

from PIL import Image

from .image_utils import extract_exif_data, format_percent, round_half_up
from .protocols import LoggerProtocol


def parse_identify_verbose(output: str) -> Dict[str, str]:
    """
    Flatten ``identify -verbose`` output into ``"Section:Key" -> value``.

    The root ``Image:`` block is dropped from the key path, so the
    geometry lands under ``"Geometry"``.
    """
    metadata: Dict[str, str] = {}
    sections: List[str] = []

    for line in output.splitlines():
        if not line.strip():
            continue
        indent = len(line) - len(line.lstrip(" "))
        level = indent // 2
        text = line.strip()

        key, sep, value = text.partition(": ")
        if not sep:
            if not text.endswith(":"):
                continue
            key, value = text[:-1], ""

        if level == 0:
            sections = []
            if value:
                metadata["Image"] = value
            continue

        del sections[level - 1 :]
        path = ":".join(sections + [key])
        if value:
            metadata[path] = value.strip()
        else:
            sections.append(key)

    return metadata


class MagickImageTool:
    """Drives the ImageMagick ``magick`` binary."""

    def __init__(
        self,
        logger: LoggerProtocol,
        binary: str = "magick",
        timeout: float = 60.0,
    ):
        self._logger = logger
        self._binary = binary
        self._timeout = timeout

    def probe(self, path: str) -> Dict[str, str]:
        """Return the verbose identify metadata for ``path``."""
        command = [self._binary, "identify", "-verbose", path]
        self._logger.debug(f"Running: {' '.join(command)}")

        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            check=True,
            timeout=self._timeout,
        )
        return parse_identify_verbose(result.stdout)

    def resize(self, source_path: str, scale_percent: float, destination_path: str) -> None:
        """
        Resize ``source_path`` by a percentage into ``destination_path``.

        The exit status is only logged; callers judge success by the
        existence of the output file.
        """
        command = [
            self._binary,
            source_path,
            "-resize",
            format_percent(scale_percent),
            destination_path,
        ]
        self._logger.debug(f"Running: {' '.join(command)}")

        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                check=False,
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired:
            self._logger.error(
                f"Resize timed out after {self._timeout}s", path=destination_path
            )
            # A killed process may leave a truncated file behind
            if os.path.exists(destination_path):
                os.remove(destination_path)
            return

        if result.returncode != 0:
            self._logger.warning(
                f"Resize exited with status {result.returncode}",
                stderr=result.stderr.strip(),
            )


class PillowImageTool:
    """Same contract as MagickImageTool, implemented with Pillow."""

    def __init__(self, logger: LoggerProtocol, quality: int = 95):
        self._logger = logger
        self._quality = quality

    def probe(self, path: str) -> Dict[str, str]:
        with Image.open(path) as image:
            return extract_exif_data(image)

    def resize(self, source_path: str, scale_percent: float, destination_path: str) -> None:
        with Image.open(source_path) as image:
            image_format = image.format
            size = (
                _scaled(image.width, scale_percent),
                _scaled(image.height, scale_percent),
            )
            self._logger.debug(
                f"Resizing {image.width}x{image.height} to {size[0]}x{size[1]}"
            )
            resized = image.resize(size, Image.Resampling.LANCZOS)

        save_kwargs: Dict[str, object] = {}
        if image_format == "JPEG":
            save_kwargs["quality"] = self._quality
            if resized.mode not in ("RGB", "L"):
                resized = resized.convert("RGB")
        resized.save(destination_path, format=image_format, **save_kwargs)


def _scaled(dimension: int, scale_percent: float) -> int:
    return max(1, int(round_half_up(dimension * scale_percent / 100, 0)))


def create_image_tool(
    kind: str,
    logger: LoggerProtocol,
    binary: str = "magick",
    timeout: Optional[float] = None,
):
    """Build the image tool named by the ``image_tool`` setting."""
    if kind == "magick":
        return MagickImageTool(logger, binary=binary, timeout=timeout or 60.0)
    if kind == "pillow":
        return PillowImageTool(logger)
    raise ValueError(f"Unknown image tool: {kind}")
