"""Exceptions raised by tocsync."""

from pathlib import Path


class TocsyncError(Exception):
    """Base class for all tocsync errors."""


class DocumentReadError(TocsyncError):
    """The document could not be read."""

    def __init__(self, path: Path, cause: Exception):
        super().__init__(f"Could not read {path}: {getattr(cause, 'strerror', None) or cause}")
        self.path = path
        self.cause = cause


class DocumentWriteError(TocsyncError):
    """The document could not be written."""

    def __init__(self, path: Path, cause: Exception):
        super().__init__(f"Could not write {path}: {getattr(cause, 'strerror', None) or cause}")
        self.path = path
        self.cause = cause


class DiscardError(TocsyncError):
    """The previous version could not be moved to the trash.

    The file is left untouched when this is raised.
    """

    def __init__(self, path: Path, cause: Exception):
        super().__init__(f"Could not move {path} to the trash: {cause}")
        self.path = path
        self.cause = cause


class ConfigError(TocsyncError):
    """The configuration file is invalid."""
