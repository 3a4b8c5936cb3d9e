"""
Undo log — the append-only record of restoring commands.

One shell command per line, no header, no metadata. A setup run
appends one line per successful mutation; an uninstall run reads
the lines back in file order. Lines are never rewritten in place.

An ``UndoLog`` is an explicit handle scoped to one run. The file is
created on the first append, so a run that changes nothing leaves
no undo log behind.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)

UNDO_FILE_PREFIX = "undo-commands-"
UNDO_FILE_SUFFIX = ".txt"
TIMESTAMP_FORMAT = "%Y-%m-%d-%H%M%S"


class UndoLogError(Exception):
    """Base class for undo logs that cannot be used."""


class UndoLogNotFoundError(UndoLogError):
    """Raised when an undo log that should be replayed does not exist."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Undo file not found: {path}")


class UndoLogReadError(UndoLogError):
    """Raised when an undo log exists but cannot be read as UTF-8 text."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read undo file {path}: {reason}")


def run_timestamp(now: datetime | None = None) -> str:
    """Timestamp used in run-log and undo-log file names."""
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)


def new_undo_log(work_dir: Path, timestamp: str) -> UndoLog:
    """Handle for a fresh undo log named by the run timestamp."""
    return UndoLog(work_dir / f"{UNDO_FILE_PREFIX}{timestamp}{UNDO_FILE_SUFFIX}")


class UndoLog:
    """Handle on a single undo-log file."""

    def __init__(self, path: Path):
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    def append(self, command: str) -> None:
        """Append one command as a new line, creating the file if needed.

        Raises:
            ValueError: If the command spans more than one line.
            OSError: If the file cannot be written.
        """
        line = command.rstrip("\r\n")
        if "\n" in line or "\r" in line:
            raise ValueError(f"Undo command must be a single line: {line!r}")
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")

    def read_entries(self) -> list[str]:
        """Read all non-blank lines, in file order.

        Raises:
            UndoLogNotFoundError: If the file does not exist.
            UndoLogReadError: If the file is unreadable or not UTF-8.
        """
        if not self.exists():
            raise UndoLogNotFoundError(self._path)

        try:
            text = self._path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise UndoLogReadError(self._path, str(e)) from e

        return [line for line in text.split("\n") if line.strip()]

    def delete(self) -> None:
        """Remove the log file.

        Raises:
            OSError: If the file cannot be removed.
        """
        self._path.unlink()

    def __repr__(self) -> str:
        return f"<UndoLog path={str(self._path)!r}>"
