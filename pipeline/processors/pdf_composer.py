"""PDF parsing and page composition on top of pypdf.

A ParsedDocument is either a read-only source (PdfReader) or the writable
accumulator (PdfWriter) that pages are appended onto. Documents are released
explicitly so the merge loop controls when each one becomes unreachable.
"""

from __future__ import annotations

import io
import logging
from typing import Optional, Sequence, Union

from pypdf import PdfReader, PdfWriter

from pipeline.core.exceptions import ParseError, SerializeError

logger = logging.getLogger(__name__)


class ParsedDocument:
    """In-memory parsed PDF."""

    __slots__ = ("_pdf", "reference")

    def __init__(
        self, pdf: Union[PdfReader, PdfWriter], reference: Optional[str] = None
    ) -> None:
        self._pdf = pdf
        self.reference = reference

    def __repr__(self) -> str:
        state = "released" if self.released else f"{len(self._pdf.pages)} pages"
        return f"ParsedDocument({self.reference!r}, {state})"

    @property
    def released(self) -> bool:
        return self._pdf is None

    @property
    def pdf(self) -> Union[PdfReader, PdfWriter]:
        if self._pdf is None:
            raise RuntimeError(f"Document {self.reference!r} has been released")
        return self._pdf

    @property
    def writable(self) -> bool:
        return isinstance(self.pdf, PdfWriter)

    @property
    def pages(self):
        return self.pdf.pages

    @property
    def page_count(self) -> int:
        return len(self.pdf.pages)

    def page_indices(self) -> list[int]:
        return list(range(self.page_count))


class PdfComposer:
    """Loads, combines and serializes PDFs."""

    def __init__(self, strict: bool = False) -> None:
        self.strict = strict

    def parse(
        self,
        data: bytes,
        *,
        writable: bool = False,
        reference: Optional[str] = None,
    ) -> ParsedDocument:
        """
        Parse a PDF byte buffer.

        Args:
          data: Complete PDF file content.
          writable: Build a PdfWriter that can accept pages (the accumulator).
          reference: Batch path, used in error reports.

        Raises:
          ParseError: Input is empty, corrupt or encrypted with a real password.
        """
        try:
            reader = PdfReader(io.BytesIO(data), strict=self.strict)
            if reader.is_encrypted:
                reader.decrypt("")
            page_count = len(reader.pages)
            pdf = PdfWriter(clone_from=reader) if writable else reader
        except Exception as e:
            logger.error(
                f"Failed to parse {reference or 'document'}: {e}",
                extra={"stage": "parse"},
            )
            raise ParseError(reference, cause=e) from e

        logger.debug(f"Parsed {reference or 'document'}: {page_count} pages")
        return ParsedDocument(pdf, reference)

    def append_pages(
        self,
        accumulator: ParsedDocument,
        source: ParsedDocument,
        page_indices: Sequence[int],
    ) -> None:
        """Copy every page of ``source``, in order, onto the end of ``accumulator``."""
        if not accumulator.writable:
            raise ValueError("Pages can only be appended to a writable document")
        expected = source.page_indices()
        if list(page_indices) != expected:
            raise ValueError(
                f"All {len(expected)} pages of the source must be copied in order"
            )

        writer = accumulator.pdf
        try:
            for index in expected:
                writer.add_page(source.pages[index])
        except Exception as e:
            raise ParseError(source.reference, cause=e) from e

    def serialize(self, document: ParsedDocument) -> bytes:
        if not document.writable:
            raise ValueError("Only the writable accumulator can be serialized")
        buffer = io.BytesIO()
        try:
            document.pdf.write(buffer)
        except Exception as e:
            logger.error(f"Failed to serialize merged PDF: {e}", exc_info=True)
            raise SerializeError(cause=e) from e
        return buffer.getvalue()

    def release(self, document: ParsedDocument) -> None:
        document._pdf = None
