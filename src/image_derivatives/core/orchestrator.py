"""Per-invocation orchestration of the derivative pipeline."""

import os
import shutil
import tempfile
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .error_handling import VersionErrorCollector
from .events import parse_trigger_event
from .exceptions import (
    ClassificationUndefined,
    EventError,
    FetchError,
    ProbeError,
    PublishError,
    PublishVerifyError,
    RenderError,
)
from .image_utils import derivative_filename
from .models import (
    DerivedArtifact,
    InvocationResult,
    PipelineState,
    SourceImage,
    SourceObjectRef,
    VersionOutcome,
    VersionSpec,
    VersionStage,
)
from .notifications import NotificationDispatcher
from .observability import LogContext
from .protocols import LoggerProtocol
from .services import (
    AspectClassifier,
    ArtifactPublisher,
    MetadataProber,
    ResizePlanner,
    SourceFetcher,
    VersionRenderer,
)

_PUBLISH_ERRORS = {
    PublishError.__name__: PublishError,
    PublishVerifyError.__name__: PublishVerifyError,
}


@dataclass
class InvocationContext:
    """State owned by exactly one invocation; never reused."""

    correlation_id: str
    source_ref: SourceObjectRef
    work_dir: str
    log_context: LogContext
    source: Optional[SourceImage] = None
    aspect_group: Optional[str] = None


class DerivativePipeline:
    """Fetches one source object and produces every configured version."""

    def __init__(
        self,
        versions: List[VersionSpec],
        fetcher: SourceFetcher,
        prober: MetadataProber,
        classifier: AspectClassifier,
        planner: ResizePlanner,
        renderer: VersionRenderer,
        publisher: ArtifactPublisher,
        logger: LoggerProtocol,
        notifier: Optional[NotificationDispatcher] = None,
        work_dir: str = "/tmp/processed",
        unclassified_label: str = "unclassified",
        skip_unclassified: bool = False,
    ):
        self._versions = list(versions)
        self._fetcher = fetcher
        self._prober = prober
        self._classifier = classifier
        self._planner = planner
        self._renderer = renderer
        self._publisher = publisher
        self._notifier = notifier
        self._logger = logger
        self._work_dir = work_dir
        self._unclassified_label = unclassified_label
        self._skip_unclassified = skip_unclassified

    def handle_event(
        self, event: Dict[str, Any], correlation_id: Optional[str] = None
    ) -> InvocationResult:
        """Run the pipeline for the first record of an S3 event. Never raises."""
        correlation_id = correlation_id or str(uuid.uuid4())
        try:
            source_ref, ignored = parse_trigger_event(event)
        except EventError as e:
            self._logger.error(f"Rejected trigger event: {e}", LogContext(correlation_id))
            return self._rejected(correlation_id, e)
        except Exception as e:
            self._logger.error(
                f"Unexpected failure reading trigger event: {type(e).__name__}: {e}",
                LogContext(correlation_id),
            )
            return self._rejected(correlation_id, e)

        if ignored:
            self._logger.warning(
                f"Event carried {ignored + 1} records, only the first is processed",
                LogContext(correlation_id),
            )
        result = self.run(source_ref, correlation_id)
        result.ignored_records = ignored
        return result

    def run(
        self, source_ref: SourceObjectRef, correlation_id: Optional[str] = None
    ) -> InvocationResult:
        """Process one source object. Never raises."""
        correlation_id = correlation_id or str(uuid.uuid4())
        result = InvocationResult(correlation_id=correlation_id, source=source_ref)
        log_context = LogContext(
            correlation_id=correlation_id, component="pipeline"
        ).with_metadata(bucket=source_ref.bucket_name, key=source_ref.object_key)

        context: Optional[InvocationContext] = None
        try:
            context = self._new_context(source_ref, correlation_id, log_context)

            result.state = PipelineState.FETCHING
            local_path = os.path.join(context.work_dir, source_ref.filename)
            self._fetcher.fetch(source_ref, local_path)

            result.state = PipelineState.PROBING
            probe = self._prober.probe(local_path)
            context.source = SourceImage(
                local_path=local_path,
                width=probe.width,
                height=probe.height,
                raw_metadata=probe.raw_metadata,
            )
            context.aspect_group = self._classify(context)

            result.state = PipelineState.PROCESSING
            result.outcomes = self._process_versions(context)
            result.state = PipelineState.DONE

        except (FetchError, ProbeError) as e:
            self._abort(result, e, log_context)
        except Exception as e:
            self._logger.error(
                f"Unexpected failure: {type(e).__name__}: {e}",
                log_context.with_operation(result.state.value),
            )
            self._abort(result, e, log_context)
        finally:
            if context is not None:
                shutil.rmtree(context.work_dir, ignore_errors=True)

        self._logger.info(
            "Invocation finished",
            log_context,
            state=result.state.value,
            failed_versions=result.failed_versions,
        )
        return result

    @staticmethod
    def _rejected(correlation_id: str, error: Exception) -> InvocationResult:
        return InvocationResult(
            correlation_id=correlation_id,
            state=PipelineState.ABORTED,
            aborted=True,
            abort_reason=f"{type(error).__name__}: {error}",
        )

    def _new_context(
        self, source_ref: SourceObjectRef, correlation_id: str, log_context: LogContext
    ) -> InvocationContext:
        os.makedirs(self._work_dir, exist_ok=True)
        base_filename = os.path.splitext(source_ref.filename)[0]
        invocation_dir = tempfile.mkdtemp(prefix=f"{base_filename}-", dir=self._work_dir)
        return InvocationContext(
            correlation_id=correlation_id,
            source_ref=source_ref,
            work_dir=invocation_dir,
            log_context=log_context,
        )

    def _abort(
        self, result: InvocationResult, error: Exception, log_context: LogContext
    ) -> None:
        self._logger.error(
            f"Aborting during {result.state.value}: {error}",
            log_context.with_operation(result.state.value),
        )
        result.state = PipelineState.ABORTED
        result.aborted = True
        result.abort_reason = f"{type(error).__name__}: {error}"

    def _classify(self, context: InvocationContext) -> Optional[str]:
        source = context.source
        label = self._classifier.classify(source.width, source.height)
        ratio = self._classifier.ratio(source.width, source.height)
        if label is not None:
            self._logger.info(f"Aspect group {label}", context.log_context, ratio=ratio)
            return label

        if self._skip_unclassified:
            self._logger.warning(
                "Ratio not in label table, versions will be skipped",
                context.log_context,
                ratio=ratio,
            )
            return None

        self._logger.warning(
            f"Ratio not in label table, using '{self._unclassified_label}'",
            context.log_context,
            ratio=ratio,
        )
        return self._unclassified_label

    def _process_versions(self, context: InvocationContext) -> List[VersionOutcome]:
        outcomes = []
        with VersionErrorCollector(f"Versions of {context.source_ref.object_key}") as errors:
            for spec in self._versions:
                outcome = VersionOutcome(
                    version_name=spec.name, aspect_group=context.aspect_group
                )
                try:
                    self._process_version(context, spec, outcome)
                except Exception as e:
                    self._record_failure(outcome, e, context)
                    errors.add_error(e, spec.name)
                outcomes.append(outcome)
        return outcomes

    def _process_version(
        self, context: InvocationContext, spec: VersionSpec, outcome: VersionOutcome
    ) -> None:
        source = context.source
        version_log = context.log_context.with_metadata(version=spec.name)

        if context.aspect_group is None:
            raise ClassificationUndefined(
                f"No aspect group for {source.width:g}x{source.height:g}",
                version_name=spec.name,
            )

        outcome.stage = VersionStage.PLANNING
        outcome.scale_percent = self._planner.plan(spec, source.width)
        self._logger.debug(
            f"Resizing to {outcome.scale_percent}%", version_log.with_operation("plan")
        )

        outcome.stage = VersionStage.RENDERING
        destination_path = os.path.join(
            context.work_dir,
            derivative_filename(
                source.base_filename, context.aspect_group, spec.name, source.extension
            ),
        )
        render = self._renderer.render(source, spec, destination_path, outcome.scale_percent)
        if not render.success:
            raise RenderError(render.error, version_name=spec.name)

        outcome.stage = VersionStage.PUBLISHING
        artifact = DerivedArtifact(
            version_name=spec.name,
            local_path=render.path,
            aspect_group=context.aspect_group,
            source=source,
        )
        publish = self._publisher.publish(artifact)
        outcome.destination_key = publish.destination_key
        if not publish.succeeded:
            error_cls = _PUBLISH_ERRORS.get(publish.error_type, PublishError)
            raise error_cls(publish.error, version_name=spec.name)
        outcome.published = True

        if self._notifier is not None:
            outcome.stage = VersionStage.NOTIFYING
            self._notifier.notify(
                spec.name, source.base_filename, context.aspect_group, source.raw_metadata
            )
            outcome.notified = True

        outcome.stage = VersionStage.DONE
        outcome.succeeded = True
        self._logger.info("Version complete", version_log, key=outcome.destination_key)

    def _record_failure(
        self, outcome: VersionOutcome, error: Exception, context: InvocationContext
    ) -> None:
        outcome.succeeded = False
        outcome.error_type = type(error).__name__
        outcome.error = str(error)
        self._logger.error(
            f"Version {outcome.version_name} failed during {outcome.stage.value}: {error}",
            context.log_context.with_operation(outcome.stage.value),
        )
