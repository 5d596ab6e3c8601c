"""Exceptions raised while precompiling and bundling templates."""

from __future__ import annotations

from pathlib import Path


class HbsBundleError(Exception):
    """Base class for every error raised by hbsbundle."""


class ConfigError(HbsBundleError, ValueError):
    """Raised when task options are malformed or inconsistent."""


class DirectoryError(HbsBundleError):
    """Raised when the template input directory cannot be read."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Failed to read template directory {path}: {reason}")
        self.path = path


class OutputDirError(HbsBundleError):
    """Raised when the output directory cannot be created."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Failed to create output directory {path}: {reason}")
        self.path = path


class WriteError(HbsBundleError):
    """Raised when writing to the output file fails.

    The output file may be left partially written.
    """

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Failed to write {path}: {reason}")
        self.path = path


class TemplateCompileError(HbsBundleError):
    """Raised when a single template cannot be precompiled."""

    def __init__(self, message: str, path: str | None = None) -> None:
        prefix = f"{path}: " if path else ""
        super().__init__(f"{prefix}{message}")
        self.message = message
        self.path = path


class CompilerUnavailableError(HbsBundleError):
    """Raised when the Node.js Handlebars compiler cannot be started."""
