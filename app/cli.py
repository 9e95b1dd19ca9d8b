"""Download the latest NeverSink loot filters into the Path of Exile directory."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, TextIO

from app.config import get_app_config, load_app_config
from app.version import get_app_version
from services.filter_update.builder import build_update_service
from services.filter_update.models import UpdateError, UpdateOutcome
from shared.logging_config import LogVerbosity, ensure_cli_logging


_LOGGER = logging.getLogger(__name__)

_VERBOSITY_BY_COUNT = (LogVerbosity.WARNING, LogVerbosity.INFO, LogVerbosity.VERBOSE)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="neversink-update", description=__doc__)
    parser.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Reinstall the latest release even if it is already installed.",
    )
    parser.add_argument(
        "-q",
        "--quite",
        "--quiet",
        dest="quiet",
        action="store_true",
        help="Do not wait for Enter before exiting on Windows.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log progress to stderr (repeat for debug output).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to a JSON file overriding the bundled configuration.",
    )
    parser.add_argument(
        "--local-release",
        type=Path,
        metavar="DIR",
        help="Install from a folder containing release.json instead of GitHub.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {get_app_version()}")
    return parser.parse_args(argv)


def format_report(outcome: UpdateOutcome) -> list[str]:
    """Render the lines printed after a successful run."""

    location = outcome.location
    lines: list[str] = []
    if location.was_created:
        lines.append(
            f"The expected PoE directory did not exist, so it was created: {location.path}"
        )
    published = outcome.release.published_at_local().strftime("%Y-%m-%d %H:%M:%S")
    lines.extend(
        [
            f'PoE configuration directory is: "{location.path}"',
            f"Current tagname:   {outcome.display_current_version}",
            f"Latest tagname:    {outcome.release.tag}",
            f"Published at:      {published}",
            f"Change:            {outcome.change.value}",
            "",
        ]
    )
    if not outcome.updated:
        lines.append("Latest version is already installed, doing nothing...")
        return lines

    lines.append(f"Removed {len(outcome.removed_files)} existing filters.")
    for name in outcome.removed_files:
        lines.append(f"  Removed {name}")
    lines.append(f"Installed {len(outcome.files_written)} filters:")
    for installed in outcome.files_written:
        lines.append(f"  Wrote {installed.filename} ({installed.bytes_written} bytes)")
    lines.append("All done")
    return lines


def _wait_for_enter(stdin: TextIO, stdout: TextIO) -> None:
    print("Press enter to close :)", file=stdout)
    try:
        stdin.readline()
    except (EOFError, OSError):
        pass


def main(
    argv: list[str] | None = None,
    *,
    stdout: TextIO | None = None,
    stdin: TextIO | None = None,
    is_windows: Callable[[], bool] | None = None,
) -> int:
    args = parse_args(argv)
    stdout = stdout or sys.stdout
    stdin = stdin or sys.stdin
    is_windows = is_windows or (lambda: sys.platform == "win32")

    verbosity = _VERBOSITY_BY_COUNT[min(args.verbose, len(_VERBOSITY_BY_COUNT) - 1)]
    ensure_cli_logging(verbosity)

    config = load_app_config(args.config) if args.config is not None else get_app_config()
    service = build_update_service(config, local_release=args.local_release)

    try:
        outcome = service.run(force=args.force)
    except UpdateError as exc:
        _LOGGER.debug("Update failed", exc_info=True)
        print(f"Error updating filter: {exc}", file=stdout)
        exit_code = 1
    else:
        for line in format_report(outcome):
            print(line, file=stdout)
        exit_code = 0

    if is_windows() and not args.quiet:
        _wait_for_enter(stdin, stdout)
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
