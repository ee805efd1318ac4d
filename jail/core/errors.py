"""Exception hierarchy surfaced to the command layer."""
from typing import Optional, Sequence


class JailError(Exception):
    """Base class for every failure a jail command reports to the user."""


class ConfigurationError(JailError):
    """Raised for invalid configuration values (bad runtime override, bad port)."""


class RuntimeUnavailableError(JailError):
    """Raised when no working container engine can be used."""


class JailNotFoundError(JailError):
    """Raised when a jail name or filter does not resolve to a jail."""


class JailExistsError(JailError):
    """Raised when creating a jail whose name is already taken."""


class PersistError(JailError):
    """Raised when a jail record cannot be read, parsed, written or deleted."""


class ExternalCommandError(JailError):
    """Raised when an engine, git or editor command exits non-zero.

    Attributes:
        command: The argv that was executed
        returncode: Exit status of the process
        stderr: Captured diagnostic output (may be empty)
    """

    def __init__(
        self,
        message: str,
        command: Optional[Sequence[str]] = None,
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        self.command = list(command) if command else []
        self.returncode = returncode
        self.stderr = (stderr or "").strip()
        if self.stderr:
            message = f"{message}: {self.stderr}"
        super().__init__(message)
