"""Service responsible for replacing installed filters with the latest release."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator

from services.filter_update.archive import ArchiveInstaller
from services.filter_update.constants import VERSION_MARKER
from services.filter_update.location import LocationResolver
from services.filter_update.models import (
    FilterIOError,
    InstallLocation,
    OutcomeStatus,
    ParseError,
    UpdateError,
    UpdateOutcome,
    UpdateStage,
    VersionFound,
)
from services.filter_update.probe import FilterMatcher, iter_installed_filters, probe_installed_version
from services.filter_update.providers import ReleaseClient
from services.filter_update.versioning import classify_release_change


_LOGGER = logging.getLogger(__name__)

__all__ = ["FilterUpdateService", "remove_stale_filters"]


@contextmanager
def _stage(stage: UpdateStage) -> Iterator[None]:
    """Tag errors escaping the block with ``stage``."""

    _LOGGER.debug("Entering stage %s", stage.value)
    try:
        yield
    except UpdateError as exc:
        if exc.stage is None:
            exc.stage = stage
        raise
    except OSError as exc:
        raise FilterIOError(str(exc), stage=stage) from exc


def remove_stale_filters(directory: Path, matcher: FilterMatcher) -> list[str]:
    """Delete every installed filter in ``directory`` and return the removed names."""

    removed: list[str] = []
    for path in list(iter_installed_filters(directory, matcher)):
        path.unlink()
        _LOGGER.debug("Removed stale filter %s", path.name)
        removed.append(path.name)
    return removed


class FilterUpdateService:
    """Coordinate version detection, release lookup and filter replacement."""

    def __init__(
        self,
        client: ReleaseClient,
        *,
        matcher: FilterMatcher | None = None,
        version_marker: str = VERSION_MARKER,
        location_resolver: Callable[[], InstallLocation] | None = None,
        installer: ArchiveInstaller | None = None,
    ) -> None:
        self._client = client
        self._matcher = matcher or FilterMatcher()
        self._version_marker = version_marker
        self._resolve_location = location_resolver or LocationResolver().resolve
        self._installer = installer or ArchiveInstaller()

    def run(self, force: bool = False) -> UpdateOutcome:
        """Bring the installed filters up to date with the latest release.

        Files are replaced when the installed version differs from the
        latest tag, when no installed version can be read, or when ``force``
        is set. Errors propagate tagged with the stage that raised them.
        """

        with _stage(UpdateStage.LOCATE_DIRECTORY):
            location = self._resolve_location()
        _LOGGER.info("Filter directory is %s", location.path)

        with _stage(UpdateStage.PROBE_CURRENT_VERSION):
            current_version, unknown_reason = self._probe_current_version(location.path)

        with _stage(UpdateStage.FETCH_LATEST_METADATA):
            release = self._client.fetch_latest_release()

        with _stage(UpdateStage.COMPARE):
            change = classify_release_change(current_version, release.tag, forced=force)
            up_to_date = current_version == release.tag and not force

        if up_to_date:
            _LOGGER.info("Latest version %s is already installed", release.tag)
            return UpdateOutcome(
                status=OutcomeStatus.UP_TO_DATE,
                location=location,
                current_version=current_version,
                release=release,
                change=change,
            )

        _LOGGER.info(
            "Replacing filters (%s): %s -> %s",
            change.value,
            current_version if current_version is not None else "<unknown>",
            release.tag,
        )

        # Old filters are gone from here until install completes; a failed
        # download leaves the directory without filters until the next run.
        with _stage(UpdateStage.REMOVE_STALE_FILES):
            removed = remove_stale_filters(location.path, self._matcher)
        _LOGGER.info("Removed %s existing filter files", len(removed))

        with _stage(UpdateStage.FETCH_ARCHIVE):
            archive_bytes = self._client.fetch_bytes(release.archive_url)
        _LOGGER.info("Fetched %s bytes for release %s", len(archive_bytes), release.tag)

        with _stage(UpdateStage.INSTALL):
            written = self._installer.install(archive_bytes, location.path)

        return UpdateOutcome(
            status=OutcomeStatus.UPDATED,
            location=location,
            current_version=current_version,
            release=release,
            change=change,
            unknown_reason=unknown_reason,
            files_written=tuple(written),
            removed_files=tuple(removed),
        )

    def _probe_current_version(self, directory: Path) -> tuple[str | None, str | None]:
        try:
            result = probe_installed_version(
                directory, self._matcher, version_marker=self._version_marker
            )
        except ParseError as exc:
            _LOGGER.warning("Installed filter is malformed, treating version as unknown: %s", exc)
            return None, exc.message
        if isinstance(result, VersionFound):
            return result.version, None
        _LOGGER.info("No installed filter version detected: %s", result.reason)
        return None, result.reason
