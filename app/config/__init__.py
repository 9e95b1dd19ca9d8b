"""Updater configuration loaded from JSON resources."""

from __future__ import annotations

import json
from dataclasses import dataclass
from importlib import resources
from math import isfinite
from pathlib import Path
from typing import Any, Mapping

from app.version import get_app_version
from services.filter_update import constants

_CONFIG_RESOURCE = "app.json"
_APP_CONFIG_CACHE: UpdaterConfig | None = None


@dataclass(frozen=True)
class ReleaseSourceConfig:
    """Where release metadata is fetched from and how requests identify us."""

    api_url: str
    user_agent: str
    timeout_seconds: float


@dataclass(frozen=True)
class FilterMatchConfig:
    """Marker strings used to recognise filters on disk and in archives."""

    product_marker: str
    extension_marker: str
    version_marker: str
    archive_extension: str


@dataclass(frozen=True)
class InstallConfig:
    """Install directory, relative to the user's documents directory."""

    relative_path: tuple[str, ...]


@dataclass(frozen=True)
class UpdaterConfig:
    """Structured configuration values for the filter updater."""

    release: ReleaseSourceConfig
    filters: FilterMatchConfig
    install: InstallConfig


def get_app_config() -> UpdaterConfig:
    """Return the cached updater configuration."""

    global _APP_CONFIG_CACHE
    if _APP_CONFIG_CACHE is None:
        _APP_CONFIG_CACHE = load_app_config()
    return _APP_CONFIG_CACHE


def reset_app_config_cache() -> None:
    """Reset the cached configuration for subsequent reloads."""

    global _APP_CONFIG_CACHE
    _APP_CONFIG_CACHE = None


def load_app_config(path: str | Path | None = None) -> UpdaterConfig:
    """Load configuration from ``path`` or the bundled JSON resource."""

    data = _read_config_data(path)
    return UpdaterConfig(
        release=_parse_release_section(data.get("release")),
        filters=_parse_filters_section(data.get("filters")),
        install=_parse_install_section(data.get("install")),
    )


def default_user_agent() -> str:
    return f"{constants.USER_AGENT_PREFIX}/{get_app_version()}"


def _read_config_data(path: str | Path | None) -> Mapping[str, Any]:
    if path is not None:
        return _load_json_from_path(Path(path).expanduser())
    return _load_default_config_data()


def _load_json_from_path(path: Path) -> Mapping[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError:
        return {}
    return _parse_json(raw)


def _load_default_config_data() -> Mapping[str, Any]:
    try:
        resource = resources.files(__package__).joinpath(_CONFIG_RESOURCE)
        raw = resource.read_text(encoding="utf-8")
    except (FileNotFoundError, OSError):
        return {}
    return _parse_json(raw)


def _parse_json(raw: str) -> Mapping[str, Any]:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return {}
    if isinstance(parsed, Mapping):
        return parsed
    return {}


def _parse_release_section(section: Any) -> ReleaseSourceConfig:
    if not isinstance(section, Mapping):
        section = {}
    return ReleaseSourceConfig(
        api_url=_coerce_text(section.get("api_url"), default=constants.API_URL),
        user_agent=_coerce_text(section.get("user_agent"), default=default_user_agent()),
        timeout_seconds=_coerce_positive_float(
            section.get("timeout_seconds"), default=constants.DEFAULT_TIMEOUT_SECONDS
        ),
    )


def _parse_filters_section(section: Any) -> FilterMatchConfig:
    if not isinstance(section, Mapping):
        section = {}
    return FilterMatchConfig(
        product_marker=_coerce_text(section.get("product_marker"), default=constants.PRODUCT_MARKER),
        extension_marker=_coerce_text(
            section.get("extension_marker"), default=constants.EXTENSION_MARKER
        ),
        version_marker=_coerce_text(section.get("version_marker"), default=constants.VERSION_MARKER),
        archive_extension=_coerce_text(
            section.get("archive_extension"), default=constants.ARCHIVE_EXTENSION
        ),
    )


def _parse_install_section(section: Any) -> InstallConfig:
    if not isinstance(section, Mapping):
        return InstallConfig(relative_path=constants.INSTALL_RELATIVE_PATH)
    raw_path = section.get("relative_path")
    if (
        isinstance(raw_path, list)
        and raw_path
        and all(isinstance(part, str) and part.strip() for part in raw_path)
    ):
        return InstallConfig(relative_path=tuple(part.strip() for part in raw_path))
    return InstallConfig(relative_path=constants.INSTALL_RELATIVE_PATH)


def _coerce_text(value: Any, *, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value
    return default


def _coerce_positive_float(value: Any, *, default: float) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        candidate = float(value)
    elif isinstance(value, str):
        try:
            candidate = float(value.strip())
        except ValueError:
            return default
    else:
        return default
    if not isfinite(candidate) or candidate <= 0:
        return default
    return candidate


__all__ = [
    "FilterMatchConfig",
    "InstallConfig",
    "ReleaseSourceConfig",
    "UpdaterConfig",
    "default_user_agent",
    "get_app_config",
    "load_app_config",
    "reset_app_config_cache",
]
