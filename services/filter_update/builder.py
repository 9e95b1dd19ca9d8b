"""Helpers for constructing the filter update service."""

from __future__ import annotations

import logging
from pathlib import Path

from app.config import UpdaterConfig, get_app_config
from services.filter_update.archive import ArchiveInstaller
from services.filter_update.location import LocationResolver
from services.filter_update.probe import FilterMatcher
from services.filter_update.providers import GitHubReleaseClient, LocalFolderReleaseClient, ReleaseClient
from services.filter_update.service import FilterUpdateService


_LOGGER = logging.getLogger(__name__)

__all__ = ["build_release_client", "build_update_service"]


def build_release_client(config: UpdaterConfig, *, local_release: Path | None = None) -> ReleaseClient:
    if local_release is not None:
        _LOGGER.info("Using local release source at %s", local_release)
        return LocalFolderReleaseClient(local_release)
    return GitHubReleaseClient(
        config.release.api_url,
        user_agent=config.release.user_agent,
        timeout=config.release.timeout_seconds,
    )


def build_update_service(
    config: UpdaterConfig | None = None,
    *,
    local_release: Path | None = None,
    client: ReleaseClient | None = None,
) -> FilterUpdateService:
    """Construct a :class:`FilterUpdateService` wired from ``config``."""

    config = config or get_app_config()
    if client is None:
        client = build_release_client(config, local_release=local_release)
    filters = config.filters
    return FilterUpdateService(
        client,
        matcher=FilterMatcher(filters.product_marker, filters.extension_marker),
        version_marker=filters.version_marker,
        location_resolver=LocationResolver(config.install.relative_path).resolve,
        installer=ArchiveInstaller(filters.archive_extension),
    )
