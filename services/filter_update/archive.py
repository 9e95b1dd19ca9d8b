"""Archive handling for installing filter files from a release zipball."""

from __future__ import annotations

import io
import logging
import os
import shutil
import tempfile
import zipfile
import zlib
from pathlib import Path, PurePosixPath
from typing import Iterator

from services.filter_update import constants
from services.filter_update.models import ArchiveEntry, ArchiveError, FilterIOError, InstalledFile


_LOGGER = logging.getLogger(__name__)

__all__ = [
    "ArchiveInstaller",
    "install_archive",
    "is_eligible_member",
    "iter_archive_entries",
    "open_archive",
]

_MEMBER_READ_ERRORS = (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError, RuntimeError)


def is_eligible_member(internal_path: str, extension: str = constants.ARCHIVE_EXTENSION) -> bool:
    """Return ``True`` when ``internal_path`` names a filter one level below the root.

    Release zipballs wrap their contents in a single generated top-level
    folder, so only ``<folder>/<name><extension>`` members qualify. The
    extension comparison is exact and case-sensitive.
    """

    if not internal_path or internal_path.endswith("/"):
        return False
    path = PurePosixPath(internal_path)
    if path.is_absolute():
        return False
    if path.suffix != extension:
        return False
    return len(path.parts) == 2


def open_archive(archive_bytes: bytes) -> zipfile.ZipFile:
    try:
        return zipfile.ZipFile(io.BytesIO(archive_bytes))
    except (zipfile.BadZipFile, zipfile.LargeZipFile, EOFError, ValueError) as exc:
        raise ArchiveError(f"Downloaded file is not a valid zip archive: {exc}") from exc


def iter_archive_entries(
    archive: zipfile.ZipFile, extension: str = constants.ARCHIVE_EXTENSION
) -> Iterator[ArchiveEntry]:
    """Yield an :class:`ArchiveEntry` for every member, in archive order."""

    for _, entry in _iter_members(archive, extension):
        yield entry


def _iter_members(
    archive: zipfile.ZipFile, extension: str
) -> Iterator[tuple[zipfile.ZipInfo, ArchiveEntry]]:
    for info in archive.infolist():
        eligible = not info.is_dir() and is_eligible_member(info.filename, extension)
        yield info, ArchiveEntry(internal_path=info.filename, is_eligible=eligible)


def install_archive(
    archive_bytes: bytes,
    target_dir: Path,
    *,
    extension: str = constants.ARCHIVE_EXTENSION,
) -> list[InstalledFile]:
    """Install the eligible members of ``archive_bytes`` into ``target_dir``.

    Members are written to a staging directory inside ``target_dir`` first
    and only moved into place once every eligible member was extracted, so a
    failed extraction leaves ``target_dir`` untouched. The first failure
    aborts the install.
    """

    with open_archive(archive_bytes) as archive:
        try:
            staging = Path(tempfile.mkdtemp(prefix=constants.STAGING_PREFIX, dir=target_dir))
        except OSError as exc:
            raise FilterIOError(f"Unable to create staging directory in {target_dir}: {exc}") from exc
        try:
            written = _extract_to_staging(archive, staging, extension)
            _promote_staged_files(staging, target_dir, written)
        finally:
            shutil.rmtree(staging, ignore_errors=True)

    if not written:
        _LOGGER.warning("Archive did not contain any %s files one level below its root", extension)
    else:
        _LOGGER.info("Installed %s filter files into %s", len(written), target_dir)
    return written


def _extract_to_staging(
    archive: zipfile.ZipFile, staging: Path, extension: str
) -> list[InstalledFile]:
    written: list[InstalledFile] = []
    total_bytes = 0
    for info, entry in _iter_members(archive, extension):
        if not entry.is_eligible:
            _LOGGER.debug("Skipping archive member %s", entry.internal_path)
            continue
        _check_member_limits(info)
        total_bytes += info.file_size
        if total_bytes > constants.MAX_ARCHIVE_TOTAL_BYTES:
            _LOGGER.error(
                "Eligible members expanded to %s bytes which exceeds limit %s",
                total_bytes,
                constants.MAX_ARCHIVE_TOTAL_BYTES,
            )
            raise ArchiveError("Release archive expanded beyond safe limits")

        filename = _destination_name(entry.internal_path)
        destination = staging / filename
        try:
            with archive.open(info) as source, destination.open("wb") as target:
                shutil.copyfileobj(source, target)
                bytes_written = target.tell()
        except _MEMBER_READ_ERRORS as exc:
            raise ArchiveError(f"Archive member {entry.internal_path} is corrupt: {exc}") from exc
        except OSError as exc:
            raise FilterIOError(f"Unable to write {filename}: {exc}") from exc
        _LOGGER.debug("Extracted %s (%s bytes)", entry.internal_path, bytes_written)
        written.append(InstalledFile(filename=filename, bytes_written=bytes_written))
    return written


def _check_member_limits(info: zipfile.ZipInfo) -> None:
    name = info.filename
    if info.file_size > constants.MAX_ARCHIVE_FILE_SIZE:
        _LOGGER.error(
            "Archive member %s exceeded file size limit (%s > %s)",
            name,
            info.file_size,
            constants.MAX_ARCHIVE_FILE_SIZE,
        )
        raise ArchiveError("Release archive contained an oversized file")
    if info.compress_size == 0 and info.file_size > 0:
        _LOGGER.error("Archive member %s reported zero compression size", name)
        raise ArchiveError("Release archive contained a suspiciously compressed file")
    if info.compress_size > 0 and info.file_size > info.compress_size * constants.MAX_COMPRESSION_RATIO:
        _LOGGER.error(
            "Archive member %s exceeded compression ratio limit (%s > %s)",
            name,
            info.file_size,
            info.compress_size * constants.MAX_COMPRESSION_RATIO,
        )
        raise ArchiveError("Release archive exceeded safe compression ratio")


def _destination_name(internal_path: str) -> str:
    name = PurePosixPath(internal_path).name
    if not name or name in {".", ".."} or Path(name).name != name:
        raise FilterIOError(f"Unable to determine a local file name for {internal_path}")
    return name


def _promote_staged_files(staging: Path, target_dir: Path, written: list[InstalledFile]) -> None:
    promoted: set[str] = set()
    for installed in written:
        if installed.filename in promoted:
            continue
        try:
            os.replace(staging / installed.filename, target_dir / installed.filename)
        except OSError as exc:
            raise FilterIOError(f"Unable to install {installed.filename}: {exc}") from exc
        promoted.add(installed.filename)
        _LOGGER.debug("Moved %s into %s", installed.filename, target_dir)


class ArchiveInstaller:
    """Install filter files from release archives into a directory."""

    def __init__(self, extension: str = constants.ARCHIVE_EXTENSION) -> None:
        self._extension = extension

    def install(self, archive_bytes: bytes, target_dir: Path) -> list[InstalledFile]:
        return install_archive(archive_bytes, target_dir, extension=self._extension)
