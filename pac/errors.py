"""Error kinds raised by pac.

Every failure the tool knows how to describe is a ``PacError`` subclass.
Per-package errors are classified by the task executor; anything that
reaches the CLI entry point aborts the command with exit status 1.
"""

from __future__ import annotations

from pathlib import Path


class PacError(Exception):
    """Base exception for pac errors."""


class FormatError(PacError):
    """A reference or persisted value has an invalid shape."""

    def __init__(self, message: str = "Invalid format"):
        super().__init__(message)


class GitSyncError(PacError):
    """Fetching, resolving or checking out a repository failed."""


class BuildError(PacError):
    def __init__(self, detail: str):
        super().__init__(f"Fail to build plugin: {detail}")


class PluginInstalledError(PacError):
    def __init__(self, path: str | Path):
        self.path = Path(path)
        super().__init__(f"Plugin already installed under {self.path}")


class PluginNotInstalledError(PacError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"{name} not installed")


class SkipLocalError(PacError):
    """The package has no remote, so there is nothing to sync."""

    def __init__(self, message: str = "Local plugin. Skipping"):
        super().__init__(message)


class NoPluginError(PacError):
    def __init__(self, name: str = ""):
        self.name = name
        msg = f"Can not find such plugin: {name}" if name else "Can not find such plugin"
        super().__init__(msg)


class PackfileLoadError(PacError):
    def __init__(self, detail: str = ""):
        super().__init__(f"Fail to load packfile: {detail}" if detail else "Fail to load packfile")


class PackfileSaveError(PacError):
    def __init__(self, detail: str = ""):
        super().__init__(f"Fail to save packfile: {detail}" if detail else "Fail to save packfile")


class ConfigGenerationError(PacError):
    def __init__(self, detail: str):
        super().__init__(f"Fail to generate loader config: {detail}")


class PathCollisionError(PacError):
    """Two distinct packages would be installed into the same directory."""

    def __init__(self, path: str | Path, idnames: list[str]):
        self.path = Path(path)
        self.idnames = idnames
        super().__init__(
            f"Packages {', '.join(idnames)} would share the directory {self.path}"
        )
