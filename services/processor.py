"""Async wrapper around the merge runner for FastAPI."""

import asyncio
import logging
from typing import Optional, Sequence

from pipeline.models.dto import DeliveryResult, DeliveryTarget, MergedArtifact
from pipeline.models.ports import FtpConnector, ObjectStorage
from pipeline.orchestrator import MergeRunner
from pipeline.processors.pdf_composer import PdfComposer

logger = logging.getLogger(__name__)


class MergeProcessor:
    """Runs merges in the default thread pool so requests do not block the loop."""

    def __init__(
        self,
        storage: ObjectStorage,
        ftp_connector: Optional[FtpConnector] = None,
        composer: Optional[PdfComposer] = None,
    ):
        self.runner = MergeRunner(storage, ftp_connector, composer)

    async def merge_only(
        self, storage_paths: Sequence[str], trace_id: Optional[str] = None
    ) -> MergedArtifact:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(
            None, lambda: self.runner.run_merge_only(storage_paths, trace_id=trace_id)
        )

    async def merge_and_deliver(
        self,
        storage_paths: Sequence[str],
        target: DeliveryTarget,
        trace_id: Optional[str] = None,
    ) -> DeliveryResult:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(
            None,
            lambda: self.runner.run_merge_and_deliver(
                storage_paths, target, trace_id=trace_id
            ),
        )
