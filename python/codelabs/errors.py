"""
Error Handling - Centralized error policies and custom exceptions.

This module defines how different error types are handled while building
and loading the catalog. A single bad metadata file never aborts a build;
it is logged with its path and cause and the scan moves on.
"""

import json
import logging
from enum import Enum, auto
from dataclasses import dataclass
from typing import Optional
from pathlib import Path

from .models import CatalogEntry


logger = logging.getLogger(__name__)


class ErrorAction(Enum):
    """What to do when an error occurs."""
    SKIP = auto()           # Skip this item, continue processing


@dataclass
class ErrorPolicy:
    """Policy for handling a specific error type."""
    action: ErrorAction
    log_level: int
    message_template: str = "{file}: {error}"


class CatalogError(Exception):
    """Base exception for catalog errors."""
    pass


class MetadataFormatError(CatalogError):
    """Metadata file parsed as JSON but is not an object."""
    def __init__(self, path: Path, found: str):
        self.path = path
        self.found = found
        super().__init__(f"expected a JSON object, got {found}")


class CatalogLoadError(CatalogError):
    """Catalog artifact is missing, unreadable or malformed."""
    pass


# Error type to policy mapping (first match wins, so subclasses come first)
ERROR_POLICIES: dict[type, ErrorPolicy] = {
    json.JSONDecodeError: ErrorPolicy(
        action=ErrorAction.SKIP,
        log_level=logging.WARNING,
        message_template="Invalid JSON in {file}: {error}"
    ),
    MetadataFormatError: ErrorPolicy(
        action=ErrorAction.SKIP,
        log_level=logging.WARNING,
        message_template="Malformed metadata in {file}: {error}"
    ),
    UnicodeDecodeError: ErrorPolicy(
        action=ErrorAction.SKIP,
        log_level=logging.WARNING,
        message_template="Cannot decode {file} as UTF-8: {error}"
    ),
    PermissionError: ErrorPolicy(
        action=ErrorAction.SKIP,
        log_level=logging.WARNING,
        message_template="Permission denied: {file}"
    ),
    FileNotFoundError: ErrorPolicy(
        action=ErrorAction.SKIP,
        log_level=logging.WARNING,
        message_template="File not found (possibly deleted): {file}"
    ),
    IsADirectoryError: ErrorPolicy(
        action=ErrorAction.SKIP,
        log_level=logging.WARNING,
        message_template="Expected file, got directory: {file}"
    ),
    OSError: ErrorPolicy(
        action=ErrorAction.SKIP,
        log_level=logging.WARNING,
        message_template="OS error reading {file}: {error}"
    ),
}


def handle_error(
    error: Exception,
    file_path: Optional[Path] = None,
    context: str = ""
) -> ErrorAction:
    """
    Handle an error according to the defined policies.

    Args:
        error: The exception that occurred
        file_path: Path to the file being processed (if applicable)
        context: Additional context for logging

    Returns:
        The action to take
    """
    policy = None
    for error_type, p in ERROR_POLICIES.items():
        if isinstance(error, error_type):
            policy = p
            break

    # Unknown errors still only cost the one record
    if policy is None:
        policy = ErrorPolicy(
            action=ErrorAction.SKIP,
            log_level=logging.ERROR,
            message_template="Unexpected error: {file} - {error}"
        )

    file_str = str(file_path) if file_path else "<unknown>"
    message = policy.message_template.format(file=file_str, error=str(error))
    if context:
        message = f"[{context}] {message}"

    logger.log(policy.log_level, message)

    return policy.action


@dataclass
class ScanOutcome:
    """Result of reading a single metadata file: an entry or a failure."""
    success: bool
    path: Path
    entry: Optional[CatalogEntry] = None
    content_hash: Optional[str] = None
    error: Optional[Exception] = None
    action_taken: Optional[ErrorAction] = None

    @classmethod
    def ok(cls, path: Path, entry: CatalogEntry, content_hash: str) -> "ScanOutcome":
        return cls(success=True, path=path, entry=entry, content_hash=content_hash)

    @classmethod
    def failed(cls, path: Path, error: Exception, action: ErrorAction) -> "ScanOutcome":
        return cls(success=False, path=path, error=error, action_taken=action)
