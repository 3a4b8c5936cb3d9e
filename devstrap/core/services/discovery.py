"""
Undo-log discovery — find the log to replay when none is given.

Undo logs are found by file-name pattern in the work directory and
ordered newest first. One match is selected automatically; several
are handed to a chooser (the CLI prompts the operator).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

logger = logging.getLogger(__name__)

ChooseFn = Callable[[list[Path]], int]


class NoUndoLogsError(Exception):
    """Raised when discovery finds no undo log to replay."""

    def __init__(self, message: str, setup_logs: list[Path] | None = None):
        super().__init__(message)
        self.setup_logs = setup_logs or []


def find_logs(directory: Path, pattern: str) -> list[Path]:
    """Files in ``directory`` matching ``pattern``, newest first."""
    if not directory.is_dir():
        return []
    matches = [p for p in directory.glob(pattern) if p.is_file()]
    matches.sort(key=lambda p: (p.stat().st_mtime, p.name), reverse=True)
    return matches


def resolve_undo_log(
    explicit: Path | None,
    directory: Path,
    pattern: str,
    setup_log_pattern: str,
    choose: ChooseFn,
) -> Path:
    """Decide which undo log to replay.

    Args:
        explicit: A path given by the operator. Returned as-is; whether
            it exists is the replayer's concern.
        directory: Where to look for undo logs.
        pattern: Glob for undo-log file names.
        setup_log_pattern: Glob for setup run logs, used in the error
            message when setup ran but recorded nothing.
        choose: Picks among several candidates; returns a 0-based index.

    Raises:
        NoUndoLogsError: If no undo log was found.
    """
    if explicit is not None:
        return explicit

    candidates = find_logs(directory, pattern)
    if not candidates:
        setup_logs = find_logs(directory, setup_log_pattern)
        if setup_logs:
            raise NoUndoLogsError(
                "Found setup logs but no undo files — no reversible actions were "
                "recorded. Specify an undo file with --undo-file.",
                setup_logs=setup_logs,
            )
        raise NoUndoLogsError(
            "No undo files or setup logs found. Cannot proceed with uninstall. "
            "Specify an undo file with --undo-file."
        )

    if len(candidates) == 1:
        logger.debug("Single undo file found: %s", candidates[0])
        return candidates[0]

    logger.info("Multiple undo files found (%d)", len(candidates))
    index = choose(candidates)
    if not 0 <= index < len(candidates):
        raise ValueError(f"Selection out of range: {index + 1}")
    return candidates[index]
