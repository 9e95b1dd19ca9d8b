"""Release client implementations."""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from http.client import HTTPException
from pathlib import Path
from typing import Any, Protocol
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from services.filter_update.constants import (
    API_URL,
    DEFAULT_TIMEOUT_SECONDS,
    GITHUB_ACCEPT_HEADER,
    LOCAL_RELEASE_METADATA,
    USER_AGENT_PREFIX,
)
from services.filter_update.models import DecodeError, NetworkError, ReleaseInfo


_LOGGER = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("tag_name", "published_at", "zipball_url")
_RFC3339_PATTERN = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[Tt ](\d{2}:\d{2}:\d{2})(?:\.(\d+))?(Z|z|[+-]\d{2}:\d{2})?$"
)


class ReleaseClient(Protocol):
    """Protocol describing where release metadata and archives come from."""

    def fetch_latest_release(self) -> ReleaseInfo:
        """Return metadata for the newest published release."""

    def fetch_bytes(self, url: str) -> bytes:
        """Return the raw body stored at ``url``."""


class GitHubReleaseClient:
    """Fetch release metadata and archives from the GitHub Releases API."""

    def __init__(
        self,
        api_url: str = API_URL,
        *,
        user_agent: str = USER_AGENT_PREFIX,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._api_url = api_url
        self._user_agent = user_agent
        self._timeout = timeout

    def fetch_latest_release(self) -> ReleaseInfo:
        _LOGGER.info("Fetching latest release metadata from %s", self._api_url)
        body = self._request(self._api_url, accept=GITHUB_ACCEPT_HEADER)
        try:
            payload = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise DecodeError(f"Release metadata is not valid JSON: {exc}") from exc
        release = parse_release_payload(payload)
        _LOGGER.info("Latest release is %s (published %s)", release.tag, release.published_at)
        return release

    def fetch_bytes(self, url: str) -> bytes:
        _LOGGER.info("Downloading %s", url)
        body = self._request(url)
        _LOGGER.debug("Downloaded %s bytes from %s", len(body), url)
        return body

    def _request(self, url: str, *, accept: str | None = None) -> bytes:
        headers = {"User-Agent": self._user_agent}
        if accept is not None:
            headers["Accept"] = accept
        request = Request(url, headers=headers)
        try:
            with urlopen(request, timeout=self._timeout) as response:  # nosec - HTTPS API endpoint
                return response.read()
        except HTTPError as exc:
            raise NetworkError(f"HTTP {exc.code}: {exc.reason} ({url})") from exc
        except URLError as exc:
            raise NetworkError(f"Failed to reach {url}: {exc.reason}") from exc
        except (OSError, HTTPException) as exc:
            raise NetworkError(f"Failed to reach {url}: {exc}") from exc


class LocalFolderReleaseClient:
    """Serve release metadata and archives from a local directory.

    ``release.json`` holds the same fields as the GitHub payload; its
    ``zipball_url`` names an archive relative to the folder.
    """

    def __init__(self, folder: Path) -> None:
        self._folder = Path(folder)

    def fetch_latest_release(self) -> ReleaseInfo:
        metadata_path = self._folder / LOCAL_RELEASE_METADATA
        try:
            raw = metadata_path.read_bytes()
        except OSError as exc:
            raise NetworkError(f"Local release metadata unavailable: {exc}") from exc
        try:
            payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise DecodeError(f"Local release metadata is not valid JSON: {exc}") from exc
        release = parse_release_payload(payload)
        _LOGGER.info("Local release %s will supply archive %s", release.tag, release.archive_url)
        return release

    def fetch_bytes(self, url: str) -> bytes:
        path = Path(url)
        if not path.is_absolute():
            path = self._folder / path
        try:
            return path.read_bytes()
        except OSError as exc:
            raise NetworkError(f"Local archive unavailable: {exc}") from exc


def parse_release_payload(payload: Any) -> ReleaseInfo:
    """Build a :class:`ReleaseInfo` from a decoded release document."""

    if not isinstance(payload, dict):
        raise DecodeError("Release metadata is not a JSON object")
    values: dict[str, str] = {}
    for field in _REQUIRED_FIELDS:
        value = payload.get(field)
        if not isinstance(value, str):
            raise DecodeError(f"Release metadata field '{field}' is missing or not a string")
        values[field] = value

    tag = values["tag_name"].strip()
    if not tag:
        raise DecodeError("Release metadata field 'tag_name' is empty")

    return ReleaseInfo(
        tag=tag,
        published_at=parse_timestamp(values["published_at"]),
        archive_url=values["zipball_url"],
    )


def parse_timestamp(raw: str) -> datetime:
    """Parse an RFC 3339 timestamp, assuming UTC when no offset is given."""

    match = _RFC3339_PATTERN.match(raw.strip())
    if match is None:
        raise DecodeError(f"Release metadata field 'published_at' is not RFC 3339: {raw!r}")
    date_part, time_part, fraction, offset = match.groups()
    # fromisoformat before 3.11 only accepts 3 or 6 fractional digits.
    fraction = f".{fraction[:6].ljust(6, '0')}" if fraction else ""
    if offset is None:
        offset = ""
    elif offset in {"Z", "z"}:
        offset = "+00:00"
    try:
        parsed = datetime.fromisoformat(f"{date_part}T{time_part}{fraction}{offset}")
    except ValueError as exc:
        raise DecodeError(f"Release metadata field 'published_at' is not RFC 3339: {raw!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


__all__ = [
    "GitHubReleaseClient",
    "LocalFolderReleaseClient",
    "ReleaseClient",
    "parse_release_payload",
    "parse_timestamp",
]
