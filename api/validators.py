"""Shared Pydantic field validators.

Reusable checks for batch paths, identifiers and FTP filenames so every
request schema applies the same rules.
"""

import re

from pipeline.core.config import (
    FILENAME_MAX_LENGTH,
    IDENTIFIER_MAX_LENGTH,
    IDENTIFIER_PATTERN,
    S3_PATH_MAX_LENGTH,
)

_IDENTIFIER_RE = re.compile(IDENTIFIER_PATTERN)


def validate_storage_path(path_value: str) -> str:
    """Validate one batch object path.

    Security checks:
    - Prevent directory traversal attacks (..)
    - Prevent absolute paths (/)
    - Check max length

    Raises:
        ValueError: If path fails validation
    """
    if not path_value or not path_value.strip():
        raise ValueError("Storage path cannot be empty")

    if ".." in path_value:
        raise ValueError("Storage path cannot contain '..' (directory traversal)")

    if path_value.startswith("/"):
        raise ValueError("Storage path cannot start with '/' (absolute path)")

    if len(path_value) > S3_PATH_MAX_LENGTH:
        raise ValueError(f"Storage path exceeds maximum length of {S3_PATH_MAX_LENGTH}")

    return path_value


def validate_identifier(value: str, name: str) -> str:
    """Validate an identifier that becomes part of an object path (orderId, format)."""
    if len(value) > IDENTIFIER_MAX_LENGTH:
        raise ValueError(f"{name} exceeds maximum length of {IDENTIFIER_MAX_LENGTH}")
    if not _IDENTIFIER_RE.match(value):
        raise ValueError(f"{name} may only contain letters, digits, '_' and '-'")
    return value


def validate_remote_filename(value: str) -> str:
    """Validate a filename sent in an FTP STOR command.

    Rejects CR/LF (command injection) and path separators.
    """
    if not value or not value.strip():
        raise ValueError("Filename cannot be empty")
    if "\r" in value or "\n" in value:
        raise ValueError("Filename cannot contain line breaks")
    if "/" in value or "\\" in value:
        raise ValueError("Filename cannot contain path separators")
    if value in (".", ".."):
        raise ValueError("Filename cannot be '.' or '..'")
    if len(value) > FILENAME_MAX_LENGTH:
        raise ValueError(f"Filename exceeds maximum length of {FILENAME_MAX_LENGTH}")
    return value
