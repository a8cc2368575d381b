"""Collaborator protocols used by the merge pipeline.

Implementations live in ``services/``; tests supply in-memory fakes.
"""

from __future__ import annotations

from typing import Iterable, Protocol


class ObjectStorage(Protocol):
    """Bucket-scoped object storage."""

    def download(self, path: str) -> bytes: ...

    def upload(
        self,
        path: str,
        data: bytes,
        content_type: str,
        overwrite: bool = True,
    ) -> None: ...

    def remove(self, paths: Iterable[str]) -> list[str]:
        """Delete objects; returns the paths that could not be removed."""
        ...


class FtpSession(Protocol):
    def upload_stream(self, data: bytes, remote_filename: str) -> None: ...

    def close(self, graceful: bool = True) -> None: ...


class FtpConnector(Protocol):
    def connect(
        self,
        host: str,
        user: str,
        password: str,
        port: int = 21,
        secure: bool = False,
    ) -> FtpSession: ...
