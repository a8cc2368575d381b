from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from typing import Optional, Sequence

from pipeline.core.exceptions import BaseError, EmptyBatchListError
from pipeline.models.dto import (
    DeliveryResult,
    DeliveryTarget,
    MergedArtifact,
    RunState,
)
from pipeline.models.ports import FtpConnector, ObjectStorage
from pipeline.processors.delivery import Delivery, cleanup_references, cleanup_required
from pipeline.processors.merger import BatchMerger
from pipeline.processors.object_fetcher import ObjectFetcher
from pipeline.processors.pdf_composer import PdfComposer
from pipeline.utils.timing import StageTimers

logger = logging.getLogger(__name__)

_TRANSITIONS = {
    RunState.IDLE: {RunState.MERGING, RunState.FAILED},
    RunState.MERGING: {RunState.DELIVERING, RunState.SUCCEEDED, RunState.FAILED},
    RunState.DELIVERING: {RunState.SUCCEEDED, RunState.FAILED},
    RunState.SUCCEEDED: set(),
    RunState.FAILED: set(),
}


class InvalidTransitionError(RuntimeError):
    """A run tried to move between states out of order."""


def _generate_run_id() -> str:
    return str(uuid.uuid4())


@dataclass
class MergeRunContext:
    references: tuple[str, ...]
    run_id: str = field(default_factory=_generate_run_id)
    trace_id: Optional[str] = None

    # populated during run
    state: RunState = RunState.IDLE
    history: list[RunState] = field(default_factory=lambda: [RunState.IDLE])
    timers: StageTimers = field(default_factory=StageTimers)
    error: Optional[Exception] = None

    def transition(self, new_state: RunState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise InvalidTransitionError(
                f"Run {self.run_id}: {self.state.value} -> {new_state.value}"
            )
        self.state = new_state
        self.history.append(new_state)

    @property
    def log_extra(self) -> dict:
        return {
            "run_id": self.run_id,
            "trace_id": self.trace_id,
            "batch_count": len(self.references),
        }


class MergeRunner:
    """Runs merge and merge-and-deliver requests.

    Holds only collaborators; every run gets its own context and accumulator,
    so one runner can serve concurrent requests.
    """

    def __init__(
        self,
        storage: ObjectStorage,
        ftp_connector: Optional[FtpConnector] = None,
        composer: Optional[PdfComposer] = None,
    ) -> None:
        self.storage = storage
        self.ftp_connector = ftp_connector
        self.composer = composer or PdfComposer()

    def run_merge_only(
        self, references: Sequence[str], trace_id: Optional[str] = None
    ) -> MergedArtifact:
        """Merge the batches and return the artifact without delivering it."""
        ctx = MergeRunContext(references=tuple(references), trace_id=trace_id)
        return self.execute_merge(ctx)

    def run_merge_and_deliver(
        self,
        references: Sequence[str],
        target: DeliveryTarget,
        trace_id: Optional[str] = None,
    ) -> DeliveryResult:
        """Merge the batches, deliver the artifact and clean up on success."""
        ctx = MergeRunContext(references=tuple(references), trace_id=trace_id)
        return self.execute_delivery(ctx, target)

    def execute_merge(self, ctx: MergeRunContext) -> MergedArtifact:
        self._start(ctx)
        try:
            artifact = self._merge(ctx)
        except Exception as e:
            self._fail(ctx, e)
            raise

        ctx.transition(RunState.SUCCEEDED)
        self._finish(ctx, page_count=artifact.page_count, size_bytes=artifact.size)
        return artifact

    def execute_delivery(
        self, ctx: MergeRunContext, target: DeliveryTarget
    ) -> DeliveryResult:
        self._start(ctx)
        delivery = Delivery(self.storage, self.ftp_connector)
        try:
            artifact = self._merge(ctx)
            ctx.transition(RunState.DELIVERING)
            with ctx.timers.timer("deliver"):
                result = delivery.deliver(artifact, target)
        except Exception as e:
            self._fail(ctx, e)
            raise

        ctx.transition(RunState.SUCCEEDED)
        if cleanup_required(target):
            with ctx.timers.timer("cleanup"):
                warnings = delivery.cleanup(cleanup_references(target, ctx.references))
            result = replace(result, cleanup_warnings=warnings)

        self._finish(
            ctx,
            page_count=result.page_count,
            size_bytes=result.size,
            target=result.target_kind,
        )
        return result

    def _start(self, ctx: MergeRunContext) -> None:
        if not ctx.references:
            ctx.error = EmptyBatchListError()
            ctx.transition(RunState.FAILED)
            raise ctx.error
        logger.info(
            f"Run {ctx.run_id} started with {len(ctx.references)} batches",
            extra=ctx.log_extra,
        )

    def _merge(self, ctx: MergeRunContext) -> MergedArtifact:
        ctx.transition(RunState.MERGING)
        merger = BatchMerger(ObjectFetcher(self.storage), self.composer)
        with ctx.timers.timer("merge"):
            return merger.merge_all(ctx.references)

    def _fail(self, ctx: MergeRunContext, error: Exception) -> None:
        failed_in = ctx.state.value
        ctx.error = error
        ctx.transition(RunState.FAILED)
        extra = dict(ctx.log_extra, stage=failed_in)
        if isinstance(error, BaseError):
            extra["error_code"] = error.error_code
            logger.error(f"Run {ctx.run_id} failed while {failed_in}: {error}", extra=extra)
        else:
            logger.exception(f"Run {ctx.run_id} failed unexpectedly while {failed_in}", extra=extra)

    def _finish(self, ctx: MergeRunContext, **fields) -> None:
        logger.info(
            f"Run {ctx.run_id} succeeded",
            extra=dict(
                ctx.log_extra,
                duration_ms=round(ctx.timers.total_seconds * 1000),
                stage_ms=ctx.timers.as_millis(),
                **fields,
            ),
        )
