"""Delivery of a merged artifact to object storage or FTP, plus source cleanup."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from pipeline.core.config import PDF_CONTENT_TYPE
from pipeline.core.exceptions import ExternalServiceError, UploadError, UploadKind
from pipeline.models.dto import (
    CleanupWarning,
    DeliveryResult,
    DeliveryTarget,
    FtpTarget,
    MergedArtifact,
    ObjectStorageTarget,
)
from pipeline.models.ports import FtpConnector, FtpSession, ObjectStorage

logger = logging.getLogger(__name__)


def cleanup_required(target: DeliveryTarget) -> bool:
    """Whether source batches are removed after a successful delivery to ``target``."""
    if isinstance(target, FtpTarget):
        return True
    return target.cleanup_sources


def cleanup_references(
    target: DeliveryTarget, references: Iterable[str]
) -> tuple[str, ...]:
    """Source batches to remove after delivery; never the artifact just written."""
    if isinstance(target, ObjectStorageTarget):
        return tuple(ref for ref in references if ref != target.path)
    return tuple(references)


class Delivery:
    """Routes a MergedArtifact to its destination."""

    def __init__(
        self,
        storage: ObjectStorage,
        ftp_connector: Optional[FtpConnector] = None,
    ) -> None:
        self.storage = storage
        self.ftp_connector = ftp_connector

    def deliver(self, artifact: MergedArtifact, target: DeliveryTarget) -> DeliveryResult:
        """
        Write the artifact to ``target``.

        Raises:
          UploadError: Any required transfer failed. Nothing is cleaned up.
        """
        if isinstance(target, ObjectStorageTarget):
            return self._deliver_to_storage(artifact, target)
        if isinstance(target, FtpTarget):
            return self._deliver_to_ftp(artifact, target)
        raise TypeError(f"Unsupported delivery target: {type(target).__name__}")

    def cleanup(self, references: Iterable[str]) -> tuple[CleanupWarning, ...]:
        """Best-effort removal of source batches. Never raises."""
        paths = tuple(references)
        if not paths:
            return ()

        logger.info(f"Cleaning up {len(paths)} batch files", extra={"stage": "cleanup"})
        try:
            failed = self.storage.remove(paths)
        except Exception as e:
            logger.warning(f"Cleanup warning: {e}", extra={"stage": "cleanup"})
            return (CleanupWarning(paths=paths, message=str(e) or type(e).__name__),)

        if failed:
            message = f"{len(failed)} of {len(paths)} batch files could not be removed"
            logger.warning(f"Cleanup warning: {message}", extra={"stage": "cleanup"})
            return (CleanupWarning(paths=tuple(failed), message=message),)
        return ()

    def _deliver_to_storage(
        self, artifact: MergedArtifact, target: ObjectStorageTarget
    ) -> DeliveryResult:
        try:
            self.storage.upload(
                target.path, artifact.data, PDF_CONTENT_TYPE, overwrite=True
            )
        except Exception as e:
            logger.error(f"Upload failed for {target.path}: {e}", extra={"stage": "deliver"})
            raise UploadError("object_storage", target.path, cause=e) from e

        logger.info(
            f"Uploaded {target.path}: {artifact.size} bytes, {artifact.page_count} pages",
            extra={"target": "object_storage", "size_bytes": artifact.size},
        )
        return DeliveryResult(
            destination=target.path,
            size=artifact.size,
            page_count=artifact.page_count,
            target_kind="object_storage",
        )

    def _deliver_to_ftp(self, artifact: MergedArtifact, target: FtpTarget) -> DeliveryResult:
        if self.ftp_connector is None:
            raise ExternalServiceError(
                service_name="FTP",
                error_type="unavailable",
                details={"reason": "No FTP connector configured"},
            )

        sidecar_data = None
        if target.sidecar is not None:
            try:
                sidecar_data = target.sidecar.encode()
            except (UnicodeEncodeError, LookupError) as e:
                raise UploadError(
                    "ftp",
                    target.sidecar.filename,
                    kind=UploadKind.SIDECAR,
                    phase="encode",
                    cause=e,
                ) from e

        logger.info(f"Connecting to FTP: {target.host}", extra={"target": "ftp"})
        try:
            session = self.ftp_connector.connect(
                target.host,
                target.user,
                target.password,
                port=target.port,
                secure=target.secure,
            )
        except Exception as e:
            logger.error(f"FTP connection to {target.host} failed: {e}")
            raise UploadError("ftp", target.filename, phase="connect", cause=e) from e

        try:
            _upload(session, artifact.data, target.filename, UploadKind.PRIMARY)
            if sidecar_data is not None:
                _upload(session, sidecar_data, target.sidecar.filename, UploadKind.SIDECAR)
        except UploadError:
            session.close(graceful=False)
            raise

        session.close(graceful=True)
        logger.info("FTP complete", extra={"target": "ftp", "size_bytes": artifact.size})

        return DeliveryResult(
            destination=target.filename,
            size=artifact.size,
            page_count=artifact.page_count,
            target_kind="ftp",
            sidecar_delivered=sidecar_data is not None,
            sidecar_filename=target.sidecar.filename if sidecar_data is not None else None,
        )


def _upload(session: FtpSession, data: bytes, filename: str, kind: UploadKind) -> None:
    logger.info(f"Uploading {kind.value}: {filename} ({len(data)} bytes)")
    try:
        session.upload_stream(data, filename)
    except Exception as e:
        logger.error(f"FTP upload of {filename} failed: {e}", extra={"target": "ftp"})
        raise UploadError("ftp", filename, kind=kind, cause=e) from e
    logger.info(f"Uploaded {kind.value}: {filename}")
