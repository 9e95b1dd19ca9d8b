"""Helpers for classifying how a release tag relates to the installed one."""

from __future__ import annotations

import re

from packaging.version import InvalidVersion, Version

from services.filter_update.models import ReleaseChange


__all__ = [
    "classify_release_change",
    "compare_versions",
]


def compare_versions(current_version: str, candidate: str) -> int:
    """Compare ``candidate`` against ``current_version``.

    Returns ``1`` when ``candidate`` is newer, ``-1`` when it is older and ``0``
    when the versions are equivalent. Tags that are not valid PEP 440
    versions are compared token by token instead.
    """

    if candidate == current_version:
        return 0

    try:
        candidate_version = Version(_strip_prefix(candidate))
        current_version_parsed = Version(_strip_prefix(current_version))
    except InvalidVersion:
        return _fallback_compare(current_version, candidate)

    if candidate_version == current_version_parsed:
        return 0
    if candidate_version > current_version_parsed:
        return 1
    return -1


def classify_release_change(
    current_version: str | None, latest_tag: str, *, forced: bool = False
) -> ReleaseChange:
    """Describe the change applying ``latest_tag`` would make.

    Used for reporting only; whether to replace files is decided by tag
    equality alone.
    """

    if current_version is None:
        return ReleaseChange.INSTALL
    if current_version == latest_tag:
        return ReleaseChange.REINSTALL if forced else ReleaseChange.UNCHANGED
    comparison = compare_versions(current_version, latest_tag)
    if comparison > 0:
        return ReleaseChange.UPGRADE
    if comparison < 0:
        return ReleaseChange.DOWNGRADE
    return ReleaseChange.REINSTALL


def _strip_prefix(version: str) -> str:
    stripped = version.strip()
    if stripped[:1] in {"v", "V"}:
        return stripped[1:]
    return stripped


def _fallback_compare(current_version: str, candidate: str) -> int:
    def tokenize(version: str) -> list[tuple[int, object]]:
        tokens: list[tuple[int, object]] = []
        for raw in re.split(r"[.\-+_\s]", _strip_prefix(version)):
            if not raw:
                continue
            if raw.isdigit():
                tokens.append((0, int(raw)))
            else:
                tokens.append((1, raw.lower()))
        return tokens

    current_tokens = tokenize(current_version)
    candidate_tokens = tokenize(candidate)
    length = max(len(current_tokens), len(candidate_tokens))
    for index in range(length):
        current_token = current_tokens[index] if index < len(current_tokens) else (0, 0)
        candidate_token = candidate_tokens[index] if index < len(candidate_tokens) else (0, 0)
        if candidate_token != current_token:
            return 1 if candidate_token > current_token else -1
    return 0
