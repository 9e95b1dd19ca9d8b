"""Data models used by the filter update service."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Union


class UpdateStage(str, Enum):
    """Stages of a single update run, in execution order."""

    LOCATE_DIRECTORY = "locate-directory"
    PROBE_CURRENT_VERSION = "probe-current-version"
    FETCH_LATEST_METADATA = "fetch-latest-metadata"
    COMPARE = "compare"
    REMOVE_STALE_FILES = "remove-stale-files"
    FETCH_ARCHIVE = "fetch-archive"
    INSTALL = "install"


class UpdateError(RuntimeError):
    """Base class for failures raised while updating the installed filters."""

    def __init__(self, message: str, *, stage: UpdateStage | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage

    def __str__(self) -> str:
        if self.stage is None:
            return self.message
        return f"[{self.stage.value}] {self.message}"


class DirectoryError(UpdateError):
    """Raised when no home or documents directory can be determined."""


class ParseError(UpdateError):
    """Raised when an installed filter exists but has no usable version line."""


class NetworkError(UpdateError):
    """Raised when the release API or archive URL cannot be reached."""


class DecodeError(UpdateError):
    """Raised when release metadata is malformed or incomplete."""


class ArchiveError(UpdateError):
    """Raised when the downloaded bytes are not a usable archive."""


class FilterIOError(UpdateError):
    """Raised when a local filesystem operation fails."""


@dataclass(frozen=True)
class ReleaseInfo:
    """Metadata describing the latest published filter release."""

    tag: str
    published_at: datetime
    archive_url: str

    def published_at_local(self) -> datetime:
        return self.published_at.astimezone()


@dataclass(frozen=True)
class InstallLocation:
    """The directory filters are installed into for this run."""

    path: Path
    was_created: bool


@dataclass(frozen=True)
class VersionFound:
    version: str
    path: Path


@dataclass(frozen=True)
class VersionNotFound:
    reason: str


ProbeResult = Union[VersionFound, VersionNotFound]


@dataclass(frozen=True)
class ArchiveEntry:
    """A single archive member considered during extraction."""

    internal_path: str
    is_eligible: bool


@dataclass(frozen=True)
class InstalledFile:
    filename: str
    bytes_written: int


class OutcomeStatus(str, Enum):
    UP_TO_DATE = "up-to-date"
    UPDATED = "updated"


class ReleaseChange(str, Enum):
    """How the latest release relates to the installed filter."""

    INSTALL = "install"
    UPGRADE = "upgrade"
    DOWNGRADE = "downgrade"
    REINSTALL = "reinstall"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class UpdateOutcome:
    """Summary of a completed update run."""

    status: OutcomeStatus
    location: InstallLocation
    current_version: str | None
    release: ReleaseInfo
    change: ReleaseChange
    unknown_reason: str | None = None
    files_written: tuple[InstalledFile, ...] = ()
    removed_files: tuple[str, ...] = ()

    @property
    def updated(self) -> bool:
        return self.status is OutcomeStatus.UPDATED

    @property
    def display_current_version(self) -> str:
        if self.current_version is not None:
            return self.current_version
        return f"<unknown: {self.unknown_reason or 'no installed filter'}>"


__all__ = [
    "ArchiveEntry",
    "ArchiveError",
    "DecodeError",
    "DirectoryError",
    "FilterIOError",
    "InstallLocation",
    "InstalledFile",
    "NetworkError",
    "OutcomeStatus",
    "ParseError",
    "ProbeResult",
    "ReleaseChange",
    "ReleaseInfo",
    "UpdateError",
    "UpdateOutcome",
    "UpdateStage",
    "VersionFound",
    "VersionNotFound",
]
