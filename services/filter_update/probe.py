"""Detect the version of the filter currently installed in a directory."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from services.filter_update.constants import EXTENSION_MARKER, PRODUCT_MARKER, VERSION_MARKER
from services.filter_update.models import ParseError, ProbeResult, VersionFound, VersionNotFound


_LOGGER = logging.getLogger(__name__)

__all__ = [
    "FilterMatcher",
    "iter_installed_filters",
    "parse_filter_version",
    "probe_installed_version",
    "read_filter_version",
]


@dataclass(frozen=True)
class FilterMatcher:
    """Naming convention used to recognise installed filter files.

    Both markers are plain, case-sensitive substrings.
    """

    product_marker: str = PRODUCT_MARKER
    extension_marker: str = EXTENSION_MARKER

    def matches(self, filename: str) -> bool:
        return self.product_marker in filename and self.extension_marker in filename


def iter_installed_filters(directory: Path, matcher: FilterMatcher) -> Iterator[Path]:
    """Yield regular files in ``directory`` whose names match ``matcher``.

    Only the top level of ``directory`` is scanned, in the order the
    filesystem lists it.
    """

    for entry in directory.iterdir():
        if matcher.matches(entry.name) and entry.is_file():
            yield entry


def parse_filter_version(text: str, marker: str = VERSION_MARKER) -> str:
    """Return the version token from the first line containing ``marker``."""

    for line in text.splitlines():
        if marker not in line:
            continue
        remainder = line.split(marker, 1)[1]
        if not remainder.split():
            raise ParseError(f"Version line is missing a version token: {line.strip()!r}")
        return line.split()[-1]
    raise ParseError("Unable to fetch the version line in the filter")


def read_filter_version(path: Path, marker: str = VERSION_MARKER) -> str:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ParseError(f"Unable to read filter {path.name}: {exc}") from exc
    try:
        return parse_filter_version(text, marker)
    except ParseError as exc:
        raise ParseError(f"{exc.message} ({path.name})") from exc


def probe_installed_version(
    directory: Path,
    matcher: FilterMatcher | None = None,
    *,
    version_marker: str = VERSION_MARKER,
) -> ProbeResult:
    """Return the version of the first installed filter found in ``directory``.

    Raises :class:`ParseError` when a matching file exists but carries no
    usable version line.
    """

    matcher = matcher or FilterMatcher()
    for path in iter_installed_filters(directory, matcher):
        _LOGGER.debug("Probing installed filter %s", path)
        version = read_filter_version(path, version_marker)
        _LOGGER.info("Installed filter %s reports version %s", path.name, version)
        return VersionFound(version=version, path=path)
    _LOGGER.debug("No installed filters found in %s", directory)
    return VersionNotFound(reason="No existing filters found")
