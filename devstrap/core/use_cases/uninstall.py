"""
Uninstall use case — replay an undo log recorded by setup.

Resolves which log to use (explicit path or discovery), replays it
through the UndoReplayer, offers to delete the consumed log, and
writes the run to the audit ledger.

Exit codes distinguish "nothing attempted" from "attempted":
    0  replay ran (even if some entries failed)
    1  fatal precondition (no log, log missing or unreadable)
    3  operator cancelled before anything ran
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from devstrap.core.engine.replayer import OutcomeFn, ReplayReport, UndoReplayer
from devstrap.core.persistence.audit import AuditEntry, AuditWriter, generate_operation_id
from devstrap.core.persistence.undo_log import UndoLog, UndoLogError
from devstrap.core.services.discovery import ChooseFn, NoUndoLogsError, resolve_undo_log

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_CANCELLED = 3


@dataclass
class UninstallResult:
    """Result of an uninstall run."""

    operation_id: str = ""
    log_path: Path | None = None
    report: ReplayReport | None = None
    deleted: bool | None = None     # None: deletion was not offered or declined
    error: str | None = None
    duration_ms: int = 0

    @property
    def cancelled(self) -> bool:
        return self.report is not None and self.report.cancelled

    @property
    def status(self) -> str:
        if self.error:
            return "failed"
        assert self.report is not None
        return self.report.status

    @property
    def exit_code(self) -> int:
        if self.error:
            return EXIT_FATAL
        if self.cancelled:
            return EXIT_CANCELLED
        return EXIT_OK

    def to_dict(self) -> dict:
        result: dict = {
            "operation_id": self.operation_id,
            "log_path": str(self.log_path) if self.log_path else None,
            "status": self.status,
        }
        if self.error:
            result["error"] = self.error
        if self.report:
            result["report"] = self.report.to_dict()
        result["deleted"] = self.deleted
        return result


def run_uninstall(
    replayer: UndoReplayer,
    confirm: Callable[[list[str]], bool],
    confirm_delete: Callable[[Path, ReplayReport], bool],
    choose: ChooseFn,
    undo_file: Path | None = None,
    work_dir: Path | None = None,
    undo_pattern: str = "undo-commands-*.txt",
    setup_log_pattern: str = "setup-log-*.txt",
    on_outcome: OutcomeFn | None = None,
    audit_writer: AuditWriter | None = None,
) -> UninstallResult:
    """Replay an undo log.

    Args:
        replayer: Executes the entries.
        confirm: Shown every entry; must return True before anything runs.
        confirm_delete: Asked after the replay, with its report, whether
            to delete the consumed log.
        choose: Picks among several discovered logs (0-based index).
        undo_file: Explicit log path; skips discovery.
        work_dir: Where to discover logs (default: cwd).
        undo_pattern: Glob for undo-log file names.
        setup_log_pattern: Glob for setup run logs.
        on_outcome: Called after each entry, for live reporting.
        audit_writer: Optional ledger for the run summary.

    Returns:
        UninstallResult. ``error`` is set on a fatal precondition.
    """
    start = time.monotonic()
    result = UninstallResult(operation_id=generate_operation_id("uninstall"))
    logger.info("Starting development environment uninstall")

    try:
        log_path = resolve_undo_log(
            explicit=undo_file,
            directory=work_dir or Path.cwd(),
            pattern=undo_pattern,
            setup_log_pattern=setup_log_pattern,
            choose=choose,
        )
        result.log_path = log_path
        logger.info("Using undo file: %s", log_path)
        undo_log = UndoLog(log_path)
        result.report = replayer.replay(undo_log, confirm=confirm, on_outcome=on_outcome)
    except NoUndoLogsError as e:
        result.error = str(e)
        logger.error(result.error)
    except UndoLogError as e:
        result.error = str(e)
        logger.error(result.error)

    if result.report is not None and not result.report.cancelled:
        logger.info("Uninstall completed!")
        if confirm_delete(undo_log.path, result.report):
            result.deleted = replayer.delete_log(undo_log)

    result.duration_ms = int((time.monotonic() - start) * 1000)

    if audit_writer is not None:
        report = result.report
        audit_writer.write(
            AuditEntry(
                operation_id=result.operation_id,
                operation_type="uninstall",
                status=result.status,
                actions_total=report.attempted if report else 0,
                actions_succeeded=report.succeeded if report else 0,
                actions_failed=report.failed if report else 0,
                duration_ms=result.duration_ms,
                errors=_audit_errors(result),
                context={"undo_log": str(result.log_path) if result.log_path else None},
            )
        )

    return result


def _audit_errors(result: UninstallResult) -> list[str]:
    if result.error:
        return [result.error]
    if result.report is None:
        return []
    return [f"{o.command} (exit {o.signal})" for o in result.report.outcomes if not o.ok]
