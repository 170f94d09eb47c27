"""Pipeline stage services: fetch, probe, classify, plan, render, publish."""

import mimetypes
import os
import shutil
from typing import Dict, Optional

from .error_handling import with_error_handling
from .exceptions import (
    FetchError,
    ProbeError,
    PublishError,
    PublishVerifyError,
)
from .image_utils import calculate_dest_key, parse_geometry, round_half_up
from .models import (
    DerivedArtifact,
    ProbeResult,
    PublishResult,
    RenderResult,
    SourceImage,
    SourceObjectRef,
    VersionSpec,
)
from .protocols import ImageToolProtocol, LoggerProtocol, S3ClientProtocol


class SourceFetcher:
    """Streams the triggering object from the source bucket to local disk."""

    def __init__(self, s3_client: S3ClientProtocol, logger: LoggerProtocol):
        self._s3_client = s3_client
        self._logger = logger

    @with_error_handling(FetchError)
    def fetch(self, source: SourceObjectRef, local_path: str) -> str:
        """
        Download ``source`` to ``local_path``.

        Raises:
            FetchError: if the object cannot be read or nothing was written
        """
        self._logger.info(
            f"Downloading s3://{source.bucket_name}/{source.object_key} to {local_path}"
        )
        response = self._s3_client.get_object(
            Bucket=source.bucket_name, Key=source.object_key
        )
        with open(local_path, "wb") as fh:
            shutil.copyfileobj(response["Body"], fh)

        if not os.path.exists(local_path) or os.path.getsize(local_path) == 0:
            raise FetchError(
                f"Failed to download {source.object_key} from {source.bucket_name}"
            )
        return local_path


class MetadataProber:
    """Extracts intrinsic geometry from a local image."""

    def __init__(self, image_tool: ImageToolProtocol, logger: LoggerProtocol):
        self._image_tool = image_tool
        self._logger = logger

    @with_error_handling(ProbeError)
    def probe(self, local_path: str) -> ProbeResult:
        """
        Probe ``local_path`` once through the image tool.

        Raises:
            ProbeError: if the file is not an image or has no usable geometry
        """
        raw_metadata = self._image_tool.probe(local_path)

        geometry = raw_metadata.get("Geometry")
        if not geometry:
            raise ProbeError(f"No geometry reported for {local_path}")
        try:
            width, height = parse_geometry(geometry)
        except ValueError as e:
            raise ProbeError(str(e)) from e

        self._logger.info(f"Probed {local_path}", width=width, height=height)
        return ProbeResult(width=width, height=height, raw_metadata=raw_metadata)


class AspectClassifier:
    """Maps a width/height ratio to a label through an exact-match table."""

    def __init__(self, ratio_labels: Dict[str, str]):
        self._ratio_labels = dict(ratio_labels)

    @property
    def labels(self):
        return list(dict.fromkeys(self._ratio_labels.values()))

    @staticmethod
    def ratio(width: float, height: float) -> float:
        return round_half_up(width / height, 2)

    def classify(self, width: float, height: float) -> Optional[str]:
        """Return the label for ``round(width / height, 2)``, or None."""
        key = str(self.ratio(width, height))
        return self._ratio_labels.get(key)


class ResizePlanner:
    """Computes the scale percentage for a version. Width only."""

    def plan(self, version_spec: VersionSpec, original_width: float) -> float:
        if version_spec.target_scale_percent is not None:
            return float(version_spec.target_scale_percent)
        if original_width <= 0:
            raise ValueError(f"Invalid original width: {original_width}")
        return round_half_up((version_spec.target_width / original_width) * 100, 4)


class VersionRenderer:
    """Runs the resize for one version and checks the output exists."""

    def __init__(self, image_tool: ImageToolProtocol, logger: LoggerProtocol):
        self._image_tool = image_tool
        self._logger = logger

    def render(
        self,
        source: SourceImage,
        version_spec: VersionSpec,
        destination_path: str,
        scale_percent: float,
    ) -> RenderResult:
        """
        Render ``version_spec`` of ``source`` into ``destination_path``.

        Never raises; a missing output file is reported as a failed result.
        """
        self._logger.info(
            f"Creating {version_spec.name} version",
            path=destination_path,
            scale_percent=scale_percent,
        )
        result = RenderResult(
            success=False, path=destination_path, scale_percent=scale_percent
        )

        # A leftover file would make the existence check meaningless
        if os.path.exists(destination_path):
            os.remove(destination_path)

        try:
            self._image_tool.resize(source.local_path, scale_percent, destination_path)
        except Exception as e:
            self._logger.error(f"Resize of {version_spec.name} raised: {e}")
            result.error = str(e)

        if os.path.exists(destination_path):
            result.success = True
            result.error = ""
            self._logger.info(f"Successfully processed {destination_path}")
        else:
            result.error = result.error or (
                f"Creating {version_spec.name} version '{destination_path}' failed"
            )
            self._logger.error(f"{result.error}, skipping upload")

        return result


class ArtifactPublisher:
    """Uploads derivatives to the destination bucket and verifies them."""

    def __init__(
        self,
        s3_client: S3ClientProtocol,
        bucket: str,
        logger: LoggerProtocol,
        prefix: str = "",
    ):
        self._s3_client = s3_client
        self._bucket = bucket
        self._prefix = prefix
        self._logger = logger

    def destination_key(self, artifact: DerivedArtifact) -> str:
        return calculate_dest_key(artifact.filename, self._prefix)

    def publish(self, artifact: DerivedArtifact) -> PublishResult:
        """
        Upload ``artifact`` then read it back. The local file is always
        removed before returning.
        """
        key = self.destination_key(artifact)
        result = PublishResult(artifact=artifact, destination_key=key)

        try:
            size = os.path.getsize(artifact.local_path)
            self._upload(artifact.local_path, key)
            self._verify(key, size)
            result.succeeded = True
            self._logger.info(f"Finished upload of {key}")
        except PublishError as e:
            result.error_type = type(e).__name__
            result.error = str(e)
            self._logger.error(f"Publishing {key} failed: {e}")
        except OSError as e:
            result.error_type = PublishError.__name__
            result.error = f"Local derivative unreadable: {e}"
            self._logger.error(f"Publishing {key} failed: {e}")
        finally:
            if os.path.exists(artifact.local_path):
                os.remove(artifact.local_path)
            self._logger.debug(f"Cleaned up {artifact.local_path}")

        return result

    @with_error_handling(PublishError)
    def _upload(self, local_path: str, key: str) -> None:
        self._logger.info(f"Uploading '{key}' to {self._bucket}")
        content_type = mimetypes.guess_type(local_path)[0] or "application/octet-stream"
        with open(local_path, "rb") as fh:
            body = fh.read()
        self._s3_client.put_object(
            Bucket=self._bucket, Key=key, Body=body, ContentType=content_type
        )

    @with_error_handling(PublishVerifyError)
    def _verify(self, key: str, expected_size: int) -> None:
        response = self._s3_client.head_object(Bucket=self._bucket, Key=key)
        stored_size = response.get("ContentLength")
        if stored_size != expected_size:
            raise PublishVerifyError(
                f"Stored object {key} has {stored_size} bytes, expected {expected_size}"
            )
