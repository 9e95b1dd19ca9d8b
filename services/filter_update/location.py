"""Resolve the game configuration directory filters are installed into."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable

import platformdirs

from services.filter_update.constants import DOCUMENTS_DIRNAME, INSTALL_RELATIVE_PATH
from services.filter_update.models import DirectoryError, FilterIOError, InstallLocation


_LOGGER = logging.getLogger(__name__)

__all__ = ["LocationResolver", "determine_documents_dir", "resolve_install_location"]


def determine_documents_dir() -> Path:
    """Return the user's documents directory.

    Falls back to ``<home>/Documents`` when the platform does not report one
    and raises :class:`DirectoryError` when no home directory exists either.
    """

    documents = _platform_documents_dir()
    if documents is not None:
        return documents

    try:
        home = Path.home()
    except (KeyError, RuntimeError) as exc:
        raise DirectoryError("Unable to find homedir for user.") from exc
    if not str(home) or str(home).startswith("~"):
        raise DirectoryError("Unable to find homedir for user.")
    _LOGGER.debug("Platform reported no documents directory; using %s", home / DOCUMENTS_DIRNAME)
    return home / DOCUMENTS_DIRNAME


def _platform_documents_dir() -> Path | None:
    try:
        reported = platformdirs.user_documents_dir()
    except (KeyError, OSError, RuntimeError) as exc:
        _LOGGER.debug("Platform documents lookup failed: %s", exc)
        return None
    if not reported or reported.startswith("~"):
        return None
    return Path(reported)


def resolve_install_location(
    relative_path: Iterable[str] = INSTALL_RELATIVE_PATH,
    *,
    documents_dir: Callable[[], Path] = determine_documents_dir,
) -> InstallLocation:
    """Return the install directory, creating it and its ancestors if absent."""

    target = documents_dir().joinpath(*relative_path)
    if target.is_dir():
        return InstallLocation(path=target, was_created=False)

    try:
        target.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FilterIOError(f"Unable to create directory {target}: {exc}") from exc
    _LOGGER.info("Created missing configuration directory %s", target)
    return InstallLocation(path=target, was_created=True)


class LocationResolver:
    """Callable wrapper binding a fixed relative path to the resolver."""

    def __init__(
        self,
        relative_path: Iterable[str] = INSTALL_RELATIVE_PATH,
        *,
        documents_dir: Callable[[], Path] = determine_documents_dir,
    ) -> None:
        self._relative_path = tuple(relative_path)
        self._documents_dir = documents_dir

    def resolve(self) -> InstallLocation:
        return resolve_install_location(self._relative_path, documents_dir=self._documents_dir)
