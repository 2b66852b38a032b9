"""Patchfleet exception hierarchy."""

from __future__ import annotations


class PatchfleetError(Exception):
    """Base exception for patchfleet errors."""


class CommandError(PatchfleetError):
    """Raised when a git or package-manager command exits non-zero."""

    def __init__(self, command: list[str], returncode: int, stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or f"exit code {returncode}"
        super().__init__(f"{' '.join(command)} failed: {detail}")


class CommandTimeoutError(PatchfleetError):
    """Raised when a command does not finish within the configured timeout."""

    def __init__(self, command: list[str], timeout: float):
        self.command = command
        self.timeout = timeout
        super().__init__(f"{' '.join(command)} timed out after {timeout:g}s")


class PackageNotTrackedError(PatchfleetError):
    """Raised when a path is not part of the tracked fleet."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Package not tracked: {path}")


class DuplicatePackageError(PatchfleetError):
    """Raised when discovery reports the same path twice."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Duplicate package path: {path}")


class PolicyError(PatchfleetError):
    """Raised when the vulnerability policy file cannot be used."""
