"""
Audit ledger — append-only run history.

Every setup and uninstall run writes an entry to an NDJSON
(newline-delimited JSON) file, next to the run logs. The ledger is
what ``devstrap history`` reads back.

The ledger is append-only: entries are never modified or deleted.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

# Default audit location (relative to the work dir)
DEFAULT_AUDIT_DIR = ".devstrap"
DEFAULT_AUDIT_FILE = "audit.ndjson"


class AuditEntry(BaseModel):
    """A single audit log entry."""

    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    operation_id: str = ""
    operation_type: str = ""       # setup, uninstall

    # Results
    status: str = ""               # ok, partial, failed, cancelled
    actions_total: int = 0
    actions_succeeded: int = 0
    actions_failed: int = 0
    duration_ms: int = 0

    # Errors (if any)
    errors: list[str] = Field(default_factory=list)

    # Extensible context (undo_log, run_log, ...)
    context: dict[str, Any] = Field(default_factory=dict)


class AuditWriter:
    """Append-only audit ledger writer.

    Each call to write() appends a single JSON line to the ledger file.
    The file is created if it doesn't exist.
    """

    def __init__(self, path: Path | None = None, work_dir: Path | None = None):
        if path is not None:
            self._path = path
        elif work_dir is not None:
            self._path = work_dir / DEFAULT_AUDIT_DIR / DEFAULT_AUDIT_FILE
        else:
            self._path = Path(DEFAULT_AUDIT_DIR) / DEFAULT_AUDIT_FILE

    @property
    def path(self) -> Path:
        return self._path

    def write(self, entry: AuditEntry) -> None:
        """Append an audit entry to the ledger.

        Args:
            entry: The entry to write.
        """
        data = entry.model_dump(mode="json")
        line = json.dumps(data, ensure_ascii=False) + "\n"

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line)
            logger.debug("Audit entry written: %s/%s", entry.operation_type, entry.operation_id)
        except OSError as e:
            logger.error("Failed to write audit entry: %s", e)

    def read_all(self) -> list[AuditEntry]:
        """Read all entries from the ledger.

        Returns:
            List of audit entries, oldest first.
        """
        if not self._path.is_file():
            return []

        entries = []
        try:
            with self._path.open("r", encoding="utf-8") as f:
                for line_num, line in enumerate(f, start=1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        data = json.loads(line)
                        entries.append(AuditEntry.model_validate(data))
                    except (json.JSONDecodeError, ValidationError) as e:
                        logger.warning("Skipping corrupt audit entry at line %d: %s", line_num, e)
        except OSError as e:
            logger.error("Failed to read audit ledger: %s", e)

        return entries

    def read_recent(self, n: int = 20) -> list[AuditEntry]:
        """Read the most recent N entries."""
        all_entries = self.read_all()
        return all_entries[-n:]


def generate_operation_id(kind: str = "op") -> str:
    """Generate a unique operation ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"{kind}-{now}-{short}"
