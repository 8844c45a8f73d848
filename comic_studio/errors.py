"""
Comic Studio: Error types.

Every failure that aborts a comic request is a ComicError. The terminal
shows str(error) verbatim, so messages are written for the operator.
"""

from typing import Optional


class ComicError(RuntimeError):
    """Base class for all comic generation failures."""


class ConfigError(ComicError):
    """Required configuration (credentials) is missing."""


class StoryValidationError(ComicError):
    """Model output did not match the story/panel schema."""


class ServiceError(ComicError):
    """Transport failure or non-success status from an external service."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ImageOutputError(ServiceError):
    """Image service returned no usable image URL."""


class ImageDownloadError(ServiceError):
    """Downloading the generated image failed."""


class WorkspaceError(ComicError):
    """Creating a directory or writing an artifact failed."""
