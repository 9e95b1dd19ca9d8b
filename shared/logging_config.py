"""Central logging configuration for the command-line updater.

Diagnostics go to stderr so that stdout only carries the update report.
The formatter scrubs the user's home directory and account name from
every record, which keeps pasted logs free of personal details. Repeated
calls never register a second handler; they only adjust the level.
"""

from __future__ import annotations

import logging
import os
import re
import sys
from enum import Enum
from pathlib import Path

_HANDLER_TAG = "_neversink_logging_handler"
_STREAM_HANDLER: logging.StreamHandler | None = None

USER_PLACEHOLDER = "<user>"
USER_HOME_PLACEHOLDER = "<user_home>"


class LogVerbosity(str, Enum):
    """Verbosity levels selectable from the command line."""

    QUIET = "quiet"
    WARNING = "warning"
    INFO = "info"
    VERBOSE = "verbose"


_VERBOSITY_LEVELS: dict[LogVerbosity, int] = {
    LogVerbosity.QUIET: logging.ERROR,
    LogVerbosity.WARNING: logging.WARNING,
    LogVerbosity.INFO: logging.INFO,
    LogVerbosity.VERBOSE: logging.DEBUG,
}

_DEFAULT_VERBOSITY = LogVerbosity.WARNING
_CURRENT_VERBOSITY = _DEFAULT_VERBOSITY


def _collect_username_candidates() -> set[str]:
    candidates: set[str] = set()
    home_name = Path.home().name
    if home_name:
        candidates.add(home_name)
    for env_var in ("USERNAME", "USER", "LOGNAME"):
        value = os.environ.get(env_var)
        if value:
            candidates.add(value)
    return {candidate.strip() for candidate in candidates if candidate and candidate.strip()}


def _collect_path_candidates() -> set[str]:
    candidates: set[str] = set()
    home_str = str(Path.home())
    if home_str:
        candidates.add(home_str)
    for env_var in ("HOME", "USERPROFILE"):
        value = os.environ.get(env_var)
        if value:
            candidates.add(os.path.expanduser(value))

    normalised = {
        os.path.normpath(candidate)
        for candidate in candidates
        if candidate and candidate not in {os.sep, ""}
    }
    return {candidate for candidate in normalised if candidate and candidate != os.sep}


def _compile_username_pattern(username: str) -> re.Pattern[str]:
    escaped = re.escape(username)
    if any(character.isalnum() for character in username):
        return re.compile(rf"(?<!\w){escaped}(?!\w)", re.IGNORECASE)
    return re.compile(escaped, re.IGNORECASE)


def _compile_path_pattern(path: str) -> re.Pattern[str]:
    flags = re.IGNORECASE if os.name == "nt" else 0
    return re.compile(re.escape(path), flags)


def _build_redaction_patterns() -> list[tuple[re.Pattern[str], str]]:
    patterns: list[tuple[re.Pattern[str], str]] = []
    seen: set[str] = set()

    # Longest paths first so a nested home never leaves a partial match behind.
    for path in sorted(_collect_path_candidates(), key=len, reverse=True):
        for variant in {path, path.replace("\\", "/"), path.replace("/", "\\")}:
            key = variant.lower() if os.name == "nt" else variant
            if key in seen:
                continue
            patterns.append((_compile_path_pattern(variant), USER_HOME_PLACEHOLDER))
            seen.add(key)

    for username in sorted(_collect_username_candidates(), key=len, reverse=True):
        patterns.append((_compile_username_pattern(username), USER_PLACEHOLDER))

    return patterns


_REDACTION_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = tuple(_build_redaction_patterns())


def _sanitize_text(message: str) -> str:
    if not message or not _REDACTION_PATTERNS:
        return message
    redacted = message
    for pattern, replacement in _REDACTION_PATTERNS:
        redacted = pattern.sub(replacement, redacted)
    return redacted


class _RedactingFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)
        return _sanitize_text(formatted)


def _coerce_verbosity(verbosity: LogVerbosity | str) -> LogVerbosity:
    if isinstance(verbosity, LogVerbosity):
        return verbosity
    try:
        return LogVerbosity(verbosity.lower())
    except ValueError as exc:
        raise ValueError(f"Unsupported log verbosity: {verbosity}") from exc


def ensure_cli_logging(verbosity: LogVerbosity | str = _DEFAULT_VERBOSITY) -> None:
    """Configure the root logger for a command-line run.

    The first invocation installs a stderr handler with the redacting
    formatter. Later invocations reuse it and only change its level.
    """

    global _STREAM_HANDLER, _CURRENT_VERBOSITY

    verbosity = _coerce_verbosity(verbosity)
    level = _VERBOSITY_LEVELS[verbosity]
    root = logging.getLogger()

    if _STREAM_HANDLER is None:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            _RedactingFormatter(
                "%(asctime)s %(levelname)s [%(name)s] %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        setattr(handler, _HANDLER_TAG, True)
        root.addHandler(handler)
        _STREAM_HANDLER = handler

    _STREAM_HANDLER.setLevel(level)
    if root.level == logging.NOTSET or root.level > level:
        root.setLevel(level)
    _CURRENT_VERBOSITY = verbosity
    logging.getLogger(__name__).debug("Log verbosity set to %s", verbosity.value)


def get_log_verbosity() -> LogVerbosity:
    """Return the verbosity most recently applied by :func:`ensure_cli_logging`."""

    return _CURRENT_VERBOSITY


def _reset_for_tests() -> None:
    """Remove handlers installed by :func:`ensure_cli_logging`."""

    global _STREAM_HANDLER, _CURRENT_VERBOSITY

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            root.removeHandler(handler)
            handler.close()

    _STREAM_HANDLER = None
    _CURRENT_VERBOSITY = _DEFAULT_VERBOSITY


__all__ = [
    "LogVerbosity",
    "USER_HOME_PLACEHOLDER",
    "USER_PLACEHOLDER",
    "ensure_cli_logging",
    "get_log_verbosity",
]
