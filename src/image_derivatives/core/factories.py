"""Factory classes for creating configured service instances."""

from typing import TYPE_CHECKING, Any, Optional

import boto3
import requests

from .config import PipelineConfig
from .imaging import create_image_tool
from .notifications import NotificationDispatcher
from .observability import StructuredLogger
from .orchestrator import DerivativePipeline
from .protocols import (
    HttpSessionProtocol,
    ImageToolProtocol,
    LoggerProtocol,
    S3ClientProtocol,
)
from .services import (
    ArtifactPublisher,
    AspectClassifier,
    MetadataProber,
    ResizePlanner,
    SourceFetcher,
    VersionRenderer,
)

if TYPE_CHECKING:
    from mypy_boto3_s3.client import S3Client
else:
    S3Client = Any


class LoggerFactory:
    """Factory for creating logger instances."""

    @staticmethod
    def create_logger(name: str = "image-derivatives", level: Optional[str] = None) -> LoggerProtocol:
        """Create a structured logger backed by the standard logging module."""
        return StructuredLogger(name, level)


class S3ClientFactory:
    """Factory for creating S3 client instances."""

    @staticmethod
    def create_s3_client(region: Optional[str] = None, **kwargs: Any) -> S3Client:
        """Create S3 client with optional configuration."""
        session = boto3.Session(region_name=region)
        return session.client("s3", **kwargs)


class PipelineFactory:
    """Factory for creating the complete derivative pipeline."""

    @staticmethod
    def create_pipeline(
        config: PipelineConfig,
        s3_client: Optional[S3ClientProtocol] = None,
        image_tool: Optional[ImageToolProtocol] = None,
        http_session: Optional[HttpSessionProtocol] = None,
        logger: Optional[LoggerProtocol] = None,
    ) -> DerivativePipeline:
        """Create a fully configured pipeline, filling in default dependencies."""

        if logger is None:
            logger = LoggerFactory.create_logger()

        if s3_client is None:
            s3_client = S3ClientFactory.create_s3_client(config.aws_region)

        if image_tool is None:
            image_tool = create_image_tool(
                config.image_tool,
                logger,
                binary=config.magick_binary,
                timeout=config.resize_timeout,
            )

        notifier = None
        if config.webhook_enabled:
            notifier = NotificationDispatcher(
                session=http_session or requests.Session(),
                url=config.webhook_url,
                api_key=config.api_key or "",
                logger=logger,
                timeout=config.webhook_timeout,
            )
        else:
            logger.info("Webhook not configured, notifications disabled")

        return DerivativePipeline(
            versions=config.versions,
            fetcher=SourceFetcher(s3_client, logger),
            prober=MetadataProber(image_tool, logger),
            classifier=AspectClassifier(config.ratio_labels),
            planner=ResizePlanner(),
            renderer=VersionRenderer(image_tool, logger),
            publisher=ArtifactPublisher(
                s3_client,
                config.destination_bucket,
                logger,
                prefix=config.destination_prefix,
            ),
            logger=logger,
            notifier=notifier,
            work_dir=config.work_dir,
            unclassified_label=config.unclassified_label,
            skip_unclassified=config.skip_unclassified,
        )
