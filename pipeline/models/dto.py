"""Value objects passed between merge and delivery stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

BatchReference = str


@dataclass(frozen=True)
class MergedArtifact:
    """Serialized merged PDF produced once per run."""

    data: bytes = field(repr=False)
    page_count: int

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class Sidecar:
    """Secondary file uploaded next to the PDF on an FTP target."""

    content: str = field(repr=False)
    filename: str
    encoding: str = "utf-8"

    def encode(self) -> bytes:
        return self.content.encode(self.encoding)


@dataclass(frozen=True)
class ObjectStorageTarget:
    """Write the artifact back into the object-storage bucket."""

    path: str
    cleanup_sources: bool = False


@dataclass(frozen=True)
class FtpTarget:
    """Upload the artifact (and optional sidecar) to an FTP server."""

    host: str
    user: str
    password: str = field(repr=False)
    filename: str
    sidecar: Optional[Sidecar] = None
    port: int = 21
    secure: bool = False


DeliveryTarget = Union[ObjectStorageTarget, FtpTarget]


@dataclass(frozen=True)
class CleanupWarning:
    """Non-fatal failure to remove source batches after a delivery."""

    paths: tuple[str, ...]
    message: str


@dataclass(frozen=True)
class DeliveryResult:
    destination: str
    size: int
    page_count: int
    target_kind: str
    sidecar_delivered: bool = False
    sidecar_filename: Optional[str] = None
    cleanup_warnings: tuple[CleanupWarning, ...] = ()


class RunState(str, Enum):
    IDLE = "idle"
    MERGING = "merging"
    DELIVERING = "delivering"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
