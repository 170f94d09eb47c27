"""
AWS Lambda entry point.

Triggered by an S3 object-created notification on the private upload
bucket. Configuration is read from the environment once per process:

  DESTINATION_BUCKET   public bucket receiving the derivatives
  DESTINATION_API_URL  photo API base URL (webhook disabled when unset)
  DESTINATION_API_KEY  photo API key
  IMAGE_VERSIONS       e.g. "thumbnail=400,medium=50%"
  AWS_REGION           set by the Lambda runtime
"""

from functools import lru_cache
from typing import Any, Dict, Optional

from .core import (
    DerivativePipeline,
    InvocationResult,
    PipelineConfig,
    PipelineFactory,
    PipelineState,
)
from .core.logging_config import get_logger


@lru_cache(maxsize=1)
def get_pipeline() -> DerivativePipeline:
    """Build the process-wide pipeline on first use."""
    return PipelineFactory.create_pipeline(PipelineConfig.from_env())


def handler(event: Dict[str, Any], context: Optional[Any] = None) -> Dict[str, Any]:
    """Produce the configured versions for the uploaded object. Never raises."""
    correlation_id = getattr(context, "aws_request_id", None)

    try:
        pipeline = get_pipeline()
    except Exception as e:
        get_logger().error(f"Pipeline could not be configured: {e}", exc_info=True)
        result = InvocationResult(
            correlation_id=correlation_id or "unconfigured",
            state=PipelineState.ABORTED,
            aborted=True,
            abort_reason=f"{type(e).__name__}: {e}",
        )
        return result.model_dump(mode="json")

    return pipeline.handle_event(event, correlation_id).model_dump(mode="json")
