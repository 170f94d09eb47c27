"""Shared data models for the image derivatives pipeline."""

import os
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SourceObjectRef(BaseModel):
    """Identifies the object whose upload triggered the invocation."""

    model_config = ConfigDict(frozen=True)

    bucket_name: str = Field(min_length=1)
    object_key: str = Field(min_length=1)

    @property
    def filename(self) -> str:
        return self.object_key.split("/")[-1]


class ProbeResult(BaseModel):
    """Intrinsic geometry of a source image."""

    width: float = Field(gt=0)
    height: float = Field(gt=0)
    raw_metadata: Dict[str, str] = Field(default_factory=dict)


class SourceImage(BaseModel):
    """Local copy of the source object together with its probed geometry."""

    local_path: str
    width: float = Field(gt=0)
    height: float = Field(gt=0)
    raw_metadata: Dict[str, str] = Field(default_factory=dict)

    @property
    def filename(self) -> str:
        return os.path.basename(self.local_path)

    @property
    def base_filename(self) -> str:
        return os.path.splitext(self.filename)[0]

    @property
    def extension(self) -> str:
        return os.path.splitext(self.filename)[1]


class VersionSpec(BaseModel):
    """A requested derivative: either a target width or a fixed scale."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    target_width: Optional[int] = Field(default=None, gt=0)
    target_scale_percent: Optional[float] = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _exactly_one_policy(self) -> "VersionSpec":
        if (self.target_width is None) == (self.target_scale_percent is None):
            raise ValueError(
                f"version '{self.name}' needs exactly one of target_width "
                "or target_scale_percent"
            )
        return self


class DerivedArtifact(BaseModel):
    """One rendered version waiting on local storage to be published."""

    version_name: str
    local_path: str
    aspect_group: str
    source: SourceImage

    @property
    def filename(self) -> str:
        return os.path.basename(self.local_path)


class RenderResult(BaseModel):
    """Outcome of a single resize invocation."""

    success: bool
    path: str
    scale_percent: float
    error: str = ""


class PublishResult(BaseModel):
    """Outcome of uploading and verifying a single artifact."""

    artifact: DerivedArtifact
    destination_key: str
    succeeded: bool = False
    error_type: str = ""
    error: str = ""


class PipelineState(str, Enum):
    """Invocation-level states."""

    IDLE = "idle"
    FETCHING = "fetching"
    PROBING = "probing"
    PROCESSING = "processing"
    DONE = "done"
    ABORTED = "aborted"


class VersionStage(str, Enum):
    """Per-version stages, in execution order."""

    PLANNING = "planning"
    RENDERING = "rendering"
    PUBLISHING = "publishing"
    NOTIFYING = "notifying"
    DONE = "done"


class VersionOutcome(BaseModel):
    """Terminal state of one version within an invocation."""

    version_name: str
    succeeded: bool = False
    stage: VersionStage = VersionStage.PLANNING
    aspect_group: Optional[str] = None
    scale_percent: Optional[float] = None
    destination_key: str = ""
    published: bool = False
    notified: bool = False
    error_type: str = ""
    error: str = ""


class InvocationResult(BaseModel):
    """Structured result of one pipeline invocation."""

    correlation_id: str
    source: Optional[SourceObjectRef] = None
    state: PipelineState = PipelineState.IDLE
    aborted: bool = False
    abort_reason: str = ""
    ignored_records: int = 0
    outcomes: List[VersionOutcome] = Field(default_factory=list)

    @property
    def failed_versions(self) -> List[str]:
        return [o.version_name for o in self.outcomes if not o.succeeded]

    @property
    def succeeded(self) -> bool:
        return not self.aborted and not self.failed_versions
