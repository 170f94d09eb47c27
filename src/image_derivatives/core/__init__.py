"""Core utilities and shared components for the image derivatives pipeline."""

from .config import PipelineConfig, parse_versions
from .events import parse_trigger_event
from .exceptions import (
    ClassificationUndefined,
    ConfigurationError,
    DerivativesPipelineError,
    EventError,
    FetchError,
    NotificationError,
    ProbeError,
    PublishError,
    PublishVerifyError,
    RenderError,
)
from .factories import PipelineFactory
from .logging_config import get_logger, setup_logger
from .models import (
    DerivedArtifact,
    InvocationResult,
    PipelineState,
    ProbeResult,
    PublishResult,
    RenderResult,
    SourceImage,
    SourceObjectRef,
    VersionOutcome,
    VersionSpec,
    VersionStage,
)
from .orchestrator import DerivativePipeline

__all__ = [
    "PipelineConfig",
    "parse_versions",
    "parse_trigger_event",
    "PipelineFactory",
    "DerivativePipeline",
    "setup_logger",
    "get_logger",
    "SourceObjectRef",
    "ProbeResult",
    "SourceImage",
    "VersionSpec",
    "DerivedArtifact",
    "RenderResult",
    "PublishResult",
    "PipelineState",
    "VersionStage",
    "VersionOutcome",
    "InvocationResult",
    "DerivativesPipelineError",
    "ConfigurationError",
    "EventError",
    "FetchError",
    "ProbeError",
    "ClassificationUndefined",
    "RenderError",
    "PublishError",
    "PublishVerifyError",
    "NotificationError",
]
