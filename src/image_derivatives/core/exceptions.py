"""Custom exceptions for the image derivatives pipeline."""

from __future__ import annotations

from typing import Optional


class DerivativesPipelineError(Exception):
    """Base exception for all image derivatives pipeline errors."""

    def __init__(self, message: str, version_name: Optional[str] = None):
        super().__init__(message)
        self.version_name = version_name


class ConfigurationError(DerivativesPipelineError):
    """Error raised for invalid configuration options."""


class EventError(DerivativesPipelineError):
    """Error raised when a trigger event does not identify a source object."""


class FetchError(DerivativesPipelineError):
    """Source object unreachable or not materialized locally."""


class ProbeError(DerivativesPipelineError):
    """Source geometry could not be extracted."""


class ClassificationUndefined(DerivativesPipelineError):
    """Aspect ratio has no entry in the ratio label table."""


class RenderError(DerivativesPipelineError):
    """Derivative file absent after the resize operation."""


class PublishError(DerivativesPipelineError):
    """Upload of a derivative to the destination store failed."""


class PublishVerifyError(PublishError):
    """Uploaded derivative could not be read back from the destination store."""


class NotificationError(DerivativesPipelineError):
    """Webhook rejected the notification or could not be reached."""

    def __init__(
        self,
        message: str,
        version_name: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, version_name=version_name)
        self.status_code = status_code
