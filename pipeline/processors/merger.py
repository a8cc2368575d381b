"""Incremental batch merge with at most two parsed documents in memory.

The first batch is parsed straight into the accumulator. Every following
batch is fetched, parsed into a transient source, appended and released
before the next one is fetched, so the resident set never exceeds the
accumulator plus one source.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from pipeline.core.exceptions import EmptyBatchListError
from pipeline.models.dto import MergedArtifact
from pipeline.processors.object_fetcher import ObjectFetcher
from pipeline.processors.pdf_composer import ParsedDocument, PdfComposer

logger = logging.getLogger(__name__)


class BatchMerger:
    """Merges an ordered list of stored PDF batches into one artifact.

    One instance may be reused across runs; each call to ``merge_all`` owns
    its own accumulator.
    """

    def __init__(
        self, fetcher: ObjectFetcher, composer: Optional[PdfComposer] = None
    ) -> None:
        self.fetcher = fetcher
        self.composer = composer or PdfComposer()

    def merge_all(self, references: Sequence[str]) -> MergedArtifact:
        """
        Merge all batches in order.

        Raises:
          EmptyBatchListError: ``references`` is empty (no fetch is attempted).
          FetchError, ParseError, SerializeError: first failure, run aborted.
        """
        refs = tuple(references)
        if not refs:
            raise EmptyBatchListError()

        total = len(refs)
        logger.info(
            f"Starting incremental merge of {total} batches",
            extra={"batch_count": total, "stage": "merge"},
        )

        accumulator = self._load_base(refs[0])
        try:
            logger.info(f"Base batch: {accumulator.page_count} pages")
            for index in range(1, total):
                logger.info(f"Merging batch {index + 1}/{total}")
                self._append_batch(accumulator, refs[index])
                logger.info(
                    f"After batch {index + 1}: {accumulator.page_count} pages"
                )

            logger.info("Saving merged PDF...")
            page_count = accumulator.page_count
            data = self.composer.serialize(accumulator)
        finally:
            self.composer.release(accumulator)

        logger.info(
            f"Merge complete: {len(data)} bytes, {page_count} pages",
            extra={"page_count": page_count, "size_bytes": len(data)},
        )
        return MergedArtifact(data=data, page_count=page_count)

    def _load_base(self, reference: str) -> ParsedDocument:
        data = self.fetcher.fetch(reference)
        return self.composer.parse(data, writable=True, reference=reference)

    def _append_batch(self, accumulator: ParsedDocument, reference: str) -> None:
        data = self.fetcher.fetch(reference)
        source = self.composer.parse(data, reference=reference)
        del data
        try:
            self.composer.append_pages(accumulator, source, source.page_indices())
        finally:
            self.composer.release(source)
