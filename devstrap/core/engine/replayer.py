"""
Undo replayer — executes a recorded undo log.

Flow:
    load entries → confirm with the operator → execute each entry
    in file order → tally → (optionally) delete the consumed log

Entries are opaque shell commands. Each one is attempted exactly
once, through the ``shell`` adapter; a failure is counted and the
replay moves on to the next entry. Entries run in the order they
were recorded, not reversed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from devstrap.adapters.registry import AdapterRegistry
from devstrap.core.models.action import Action, Receipt
from devstrap.core.persistence.undo_log import UndoLog

logger = logging.getLogger(__name__)

ConfirmFn = Callable[[list[str]], bool]
OutcomeFn = Callable[["ReplayOutcome"], None]


@dataclass
class ReplayOutcome:
    """Result of executing one undo-log entry."""

    index: int          # 1-based position among non-blank entries
    command: str
    receipt: Receipt

    @property
    def ok(self) -> bool:
        return self.receipt.ok

    @property
    def signal(self) -> int | str | None:
        """Exit code or error reported by a failed entry."""
        return None if self.receipt.ok else self.receipt.signal

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "command": self.command,
            "ok": self.ok,
            "signal": self.signal,
            "error": self.receipt.error,
        }


@dataclass
class ReplayReport:
    """Result of replaying an undo log."""

    log_path: str = ""
    entries: list[str] = field(default_factory=list)
    outcomes: list[ReplayOutcome] = field(default_factory=list)
    cancelled: bool = False

    @property
    def attempted(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.ok)

    @property
    def counts(self) -> tuple[int, int]:
        """(successCount, errorCount)."""
        return self.succeeded, self.failed

    @property
    def needs_followup(self) -> bool:
        """Some entries failed; the operator may have to undo them by hand."""
        return self.failed > 0

    @property
    def status(self) -> str:
        if self.cancelled:
            return "cancelled"
        if self.failed == 0:
            return "ok"
        if self.succeeded > 0:
            return "partial"
        return "failed"

    def to_dict(self) -> dict:
        return {
            "log_path": self.log_path,
            "status": self.status,
            "entries": len(self.entries),
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


class UndoReplayer:
    """Replay undo logs through the adapter registry's shell adapter."""

    def __init__(
        self,
        registry: AdapterRegistry,
        work_dir: str = ".",
        timeout: int = 600,
    ):
        self._registry = registry
        self._work_dir = work_dir
        self._timeout = timeout

    def load_entries(self, log: UndoLog) -> list[str]:
        """Non-blank entries of the log, in file order.

        Raises:
            UndoLogNotFoundError: If the log does not exist.
            UndoLogReadError: If the log cannot be read.
        """
        entries = log.read_entries()
        logger.info("Found %d undo commands in %s", len(entries), log.path)
        return entries

    def replay(
        self,
        log: UndoLog,
        confirm: ConfirmFn,
        on_outcome: OutcomeFn | None = None,
    ) -> ReplayReport:
        """Execute every entry of ``log`` after operator confirmation.

        Args:
            log: The undo log to replay.
            confirm: Shown the full entry list; must return True to proceed.
            on_outcome: Called after each entry, for live reporting.

        Returns:
            ReplayReport. ``cancelled`` is set if confirmation was declined.

        Raises:
            UndoLogNotFoundError: If the log does not exist. Nothing runs.
            UndoLogReadError: If the log cannot be read. Nothing runs.
        """
        entries = self.load_entries(log)
        report = ReplayReport(log_path=str(log.path), entries=entries)

        if not entries:
            logger.info("Undo log is empty — nothing to undo")
            return report

        if not confirm(entries):
            logger.info("Uninstall cancelled by user")
            report.cancelled = True
            return report

        for index, command in enumerate(entries, start=1):
            outcome = self._execute_entry(index, command)
            report.outcomes.append(outcome)
            if on_outcome is not None:
                on_outcome(outcome)

        logger.info("Commands executed successfully: %d", report.succeeded)
        logger.info("Commands with errors: %d", report.failed)
        if report.needs_followup:
            logger.warning(
                "Some commands failed. You may need to manually undo some changes."
            )
        return report

    def delete_log(self, log: UndoLog) -> bool:
        """Remove a consumed undo log. Failure is logged, never raised."""
        try:
            log.delete()
        except OSError as e:
            logger.error("Failed to delete undo file %s: %s", log.path, e)
            return False
        logger.info("Undo file deleted: %s", log.path)
        return True

    def _execute_entry(self, index: int, command: str) -> ReplayOutcome:
        logger.info("Executing: %s", command)
        action = Action(
            id=f"undo:{index}",
            name=f"undo entry {index}",
            adapter="shell",
            params={"command": command},
        )
        receipt = self._registry.execute_action(
            action,
            work_dir=self._work_dir,
            timeout=self._timeout,
        )
        if receipt.ok:
            logger.info("Successfully executed: %s", command)
        else:
            logger.error("Command failed: %s (Exit code: %s)", command, receipt.signal)
        return ReplayOutcome(index=index, command=command, receipt=receipt)
