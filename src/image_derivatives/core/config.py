"""Process-wide configuration, loaded once from the environment."""

import os
from typing import Dict, List, Literal, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigurationError
from .models import VersionSpec

DEFAULT_RATIO_LABELS: Dict[str, str] = {
    "0.8": "portrait",
    "1.0": "square",
    "1.25": "landscape",
}

DEFAULT_VERSIONS = "thumbnail=400"


class PipelineConfig(BaseModel):
    """Configuration for the derivative pipeline."""

    destination_bucket: str = Field(min_length=1)
    destination_prefix: str = ""
    aws_region: Optional[str] = None
    api_base_url: Optional[str] = None
    api_key: Optional[str] = None
    webhook_path: str = "photo_versions"
    versions: List[VersionSpec] = Field(
        default_factory=lambda: [VersionSpec(name="thumbnail", target_width=400)]
    )
    ratio_labels: Dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_RATIO_LABELS)
    )
    unclassified_label: str = "unclassified"
    skip_unclassified: bool = False
    image_tool: Literal["magick", "pillow"] = "magick"
    magick_binary: str = "magick"
    work_dir: str = "/tmp/processed"
    resize_timeout: float = Field(default=60.0, gt=0)
    webhook_timeout: float = Field(default=10.0, gt=0)

    @field_validator("versions")
    @classmethod
    def _unique_version_names(cls, versions: List[VersionSpec]) -> List[VersionSpec]:
        if not versions:
            raise ValueError("at least one version must be configured")
        names = [v.name for v in versions]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"duplicate version names: {', '.join(duplicates)}")
        return versions

    @property
    def webhook_enabled(self) -> bool:
        return bool(self.api_base_url and self.api_key)

    @property
    def webhook_url(self) -> str:
        return f"{(self.api_base_url or '').rstrip('/')}/{self.webhook_path.lstrip('/')}"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "PipelineConfig":
        """
        Build configuration from environment variables.

        Raises:
            ConfigurationError: if a variable is missing or malformed
        """
        env = os.environ if environ is None else environ

        values: Dict[str, object] = {
            "destination_bucket": env.get("DESTINATION_BUCKET", ""),
            "destination_prefix": env.get("DESTINATION_PREFIX", ""),
            "aws_region": env.get("AWS_REGION") or None,
            "api_base_url": env.get("DESTINATION_API_URL") or None,
            "api_key": env.get("DESTINATION_API_KEY") or None,
            "versions": parse_versions(env.get("IMAGE_VERSIONS", DEFAULT_VERSIONS)),
            "skip_unclassified": env.get("SKIP_UNCLASSIFIED", "false").lower()
            in ("1", "true", "yes"),
        }
        optional = {
            "webhook_path": "DESTINATION_API_PATH",
            "image_tool": "IMAGE_TOOL",
            "magick_binary": "MAGICK_BINARY",
            "work_dir": "WORK_DIR",
            "resize_timeout": "RESIZE_TIMEOUT",
            "webhook_timeout": "WEBHOOK_TIMEOUT",
        }
        for field_name, env_name in optional.items():
            if env.get(env_name):
                values[field_name] = env[env_name]

        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid pipeline configuration: {e}") from e


def parse_versions(value: str) -> List[VersionSpec]:
    """
    Parse a version list such as ``"thumbnail=400,medium=50%"``.

    A bare number is a target width in pixels; a trailing ``%`` marks a
    fixed scale percentage.
    """
    versions = []
    for item in value.split(","):
        item = item.strip()
        if not item:
            continue
        name, sep, target = item.partition("=")
        name, target = name.strip(), target.strip()
        if not sep or not name or not target:
            raise ConfigurationError(f"Malformed version entry: '{item}'")
        try:
            if target.endswith("%"):
                spec = VersionSpec(name=name, target_scale_percent=float(target[:-1]))
            else:
                spec = VersionSpec(name=name, target_width=int(target))
        except (ValueError, ValidationError) as e:
            raise ConfigurationError(f"Malformed version entry '{item}': {e}") from e
        versions.append(spec)
    return versions
