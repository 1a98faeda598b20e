"""Data models for the File Opener upload client.

Two tagged families live here:

* :class:`ErrorCause` -- why an attempt failed (mutually exclusive).
* :class:`UploadState` -- the single state an upload controller exposes.

All instances are frozen so observers only ever see complete snapshots.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from fileopener.constants import (
    ABORTED_MESSAGE,
    APPLICATION_DEFAULT_MESSAGE,
    NETWORK_ERROR_MESSAGE,
    NO_FILE_MESSAGE,
    PARSE_ERROR_MESSAGE,
)


@dataclass(frozen=True, slots=True)
class SelectedFile:
    """A file chosen for upload, with the metadata shown to the user."""

    name: str
    size_bytes: int
    raw_handle: Path

    @classmethod
    def from_path(cls, path: str | Path) -> SelectedFile:
        """Build a SelectedFile from a filesystem path.

        Raises:
            FileNotFoundError: If *path* does not exist.
            IsADirectoryError: If *path* is a directory.
            PermissionError: If the current user cannot read *path*.
        """
        resolved = Path(path).expanduser().resolve()
        stat = resolved.stat()
        if resolved.is_dir():
            raise IsADirectoryError(f"Not a file: {path}")
        if not os.access(resolved, os.R_OK):
            raise PermissionError(f"Not readable: {path}")
        return cls(name=resolved.name, size_bytes=stat.st_size, raw_handle=resolved)

    @property
    def size_mb(self) -> float:
        return self.size_bytes / 1024 / 1024


# ---------------------------------------------------------------------------
# Error causes
# ---------------------------------------------------------------------------


class ErrorKind(str, Enum):
    """Failure classes an upload attempt can settle into."""

    NO_FILE_SELECTED = "no_file_selected"
    NETWORK_ERROR = "network_error"
    SERVER_ERROR = "server_error"
    PARSE_ERROR = "parse_error"
    APPLICATION = "application"
    ABORTED = "aborted"


@dataclass(frozen=True, slots=True)
class ErrorCause:
    """Base for every failure cause. Subclasses set ``kind``."""

    kind: ErrorKind = field(init=False)

    @property
    def message(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class NoFileSelected(ErrorCause):
    kind: ErrorKind = field(default=ErrorKind.NO_FILE_SELECTED, init=False)

    @property
    def message(self) -> str:
        return NO_FILE_MESSAGE


@dataclass(frozen=True, slots=True)
class NetworkError(ErrorCause):
    """Transport-level failure (DNS, refused connection, reset, unreadable body)."""

    detail: str = ""
    kind: ErrorKind = field(default=ErrorKind.NETWORK_ERROR, init=False)

    @property
    def message(self) -> str:
        if self.detail:
            return f"{NETWORK_ERROR_MESSAGE}: {self.detail}"
        return NETWORK_ERROR_MESSAGE


@dataclass(frozen=True, slots=True)
class ServerError(ErrorCause):
    status: int = 0
    kind: ErrorKind = field(default=ErrorKind.SERVER_ERROR, init=False)

    @property
    def message(self) -> str:
        return f"Server error: {self.status}"


@dataclass(frozen=True, slots=True)
class ParseError(ErrorCause):
    kind: ErrorKind = field(default=ErrorKind.PARSE_ERROR, init=False)

    @property
    def message(self) -> str:
        return PARSE_ERROR_MESSAGE


@dataclass(frozen=True, slots=True)
class Application(ErrorCause):
    """The agent answered ``success: false``."""

    error_message: str = APPLICATION_DEFAULT_MESSAGE
    kind: ErrorKind = field(default=ErrorKind.APPLICATION, init=False)

    @property
    def message(self) -> str:
        return self.error_message


@dataclass(frozen=True, slots=True)
class Aborted(ErrorCause):
    kind: ErrorKind = field(default=ErrorKind.ABORTED, init=False)

    @property
    def message(self) -> str:
        return ABORTED_MESSAGE


# ---------------------------------------------------------------------------
# Upload state
# ---------------------------------------------------------------------------


class UploadPhase(str, Enum):
    """Lifecycle phase of an upload; values match the FSM state values."""

    IDLE = "idle"
    READY = "ready"
    IN_PROGRESS = "in_progress"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class UploadState:
    """Base for every controller snapshot. Subclasses set ``phase``."""

    phase: UploadPhase = field(init=False)

    @property
    def is_terminal(self) -> bool:
        return self.phase in (UploadPhase.SUCCEEDED, UploadPhase.FAILED)


@dataclass(frozen=True, slots=True)
class Idle(UploadState):
    phase: UploadPhase = field(default=UploadPhase.IDLE, init=False)


@dataclass(frozen=True, slots=True)
class Ready(UploadState):
    file: SelectedFile | None = None
    phase: UploadPhase = field(default=UploadPhase.READY, init=False)


@dataclass(frozen=True, slots=True)
class InProgress(UploadState):
    """Request sent; ``percent`` never decreases within one ``attempt``."""

    percent: int = 0
    attempt: int = 0
    phase: UploadPhase = field(default=UploadPhase.IN_PROGRESS, init=False)

    def __post_init__(self) -> None:
        if not 0 <= self.percent <= 100:
            raise ValueError(f"percent out of range: {self.percent}")


@dataclass(frozen=True, slots=True)
class Succeeded(UploadState):
    file_path: str = ""
    phase: UploadPhase = field(default=UploadPhase.SUCCEEDED, init=False)


@dataclass(frozen=True, slots=True)
class Failed(UploadState):
    cause: ErrorCause = field(default_factory=ParseError)
    phase: UploadPhase = field(default=UploadPhase.FAILED, init=False)
