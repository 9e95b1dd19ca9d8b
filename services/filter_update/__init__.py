"""Public API for the filter update package."""

from __future__ import annotations

from services.filter_update.archive import ArchiveInstaller, install_archive, is_eligible_member
from services.filter_update.constants import (
    API_URL,
    ARCHIVE_EXTENSION,
    EXTENSION_MARKER,
    GITHUB_REPO,
    INSTALL_RELATIVE_PATH,
    MAX_ARCHIVE_FILE_SIZE,
    MAX_ARCHIVE_TOTAL_BYTES,
    MAX_COMPRESSION_RATIO,
    PRODUCT_MARKER,
    VERSION_MARKER,
)
from services.filter_update.location import LocationResolver, resolve_install_location
from services.filter_update.models import (
    ArchiveEntry,
    ArchiveError,
    DecodeError,
    DirectoryError,
    FilterIOError,
    InstallLocation,
    InstalledFile,
    NetworkError,
    OutcomeStatus,
    ParseError,
    ProbeResult,
    ReleaseChange,
    ReleaseInfo,
    UpdateError,
    UpdateOutcome,
    UpdateStage,
    VersionFound,
    VersionNotFound,
)
from services.filter_update.probe import FilterMatcher, probe_installed_version
from services.filter_update.providers import GitHubReleaseClient, LocalFolderReleaseClient, ReleaseClient
from services.filter_update.service import FilterUpdateService, remove_stale_filters

__all__ = [
    "API_URL",
    "ARCHIVE_EXTENSION",
    "EXTENSION_MARKER",
    "GITHUB_REPO",
    "INSTALL_RELATIVE_PATH",
    "MAX_ARCHIVE_FILE_SIZE",
    "MAX_ARCHIVE_TOTAL_BYTES",
    "MAX_COMPRESSION_RATIO",
    "PRODUCT_MARKER",
    "VERSION_MARKER",
    "ArchiveEntry",
    "ArchiveError",
    "ArchiveInstaller",
    "DecodeError",
    "DirectoryError",
    "FilterIOError",
    "FilterMatcher",
    "FilterUpdateService",
    "GitHubReleaseClient",
    "InstallLocation",
    "InstalledFile",
    "LocalFolderReleaseClient",
    "LocationResolver",
    "NetworkError",
    "OutcomeStatus",
    "ParseError",
    "ProbeResult",
    "ReleaseChange",
    "ReleaseClient",
    "ReleaseInfo",
    "UpdateError",
    "UpdateOutcome",
    "UpdateStage",
    "VersionFound",
    "VersionNotFound",
    "install_archive",
    "is_eligible_member",
    "probe_installed_version",
    "remove_stale_filters",
    "resolve_install_location",
]
