"""Constants shared across the filter update modules."""

from __future__ import annotations

GITHUB_REPO = "NeverSinkDev/NeverSink-Filter"
API_URL = f"https://api.github.com/repos/{GITHUB_REPO}/releases/latest"
GITHUB_ACCEPT_HEADER = "application/vnd.github+json"
DEFAULT_TIMEOUT_SECONDS = 30.0
USER_AGENT_PREFIX = "neversink-filter-updater"

PRODUCT_MARKER = "NeverSink"
EXTENSION_MARKER = ".filter"
VERSION_MARKER = "# VERSION:"
ARCHIVE_EXTENSION = ".filter"

INSTALL_RELATIVE_PATH = ("My Games", "Path of Exile")
DOCUMENTS_DIRNAME = "Documents"

LOCAL_RELEASE_METADATA = "release.json"
STAGING_PREFIX = ".neversink-update-"

MAX_ARCHIVE_FILE_SIZE = 64 * 1024 * 1024  # 64 MiB per filter file
MAX_ARCHIVE_TOTAL_BYTES = 256 * 1024 * 1024  # 256 MiB across eligible members
MAX_COMPRESSION_RATIO = 200  # Uncompressed vs compressed bytes
