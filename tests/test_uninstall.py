"""
Tests for the uninstall use case — resolution, exit codes, deletion, audit.
"""

from pathlib import Path

import pytest

from devstrap.core.engine.replayer import ReplayReport, UndoReplayer
from devstrap.core.persistence.audit import AuditWriter
from devstrap.core.use_cases.uninstall import (
    EXIT_CANCELLED,
    EXIT_FATAL,
    EXIT_OK,
    run_uninstall,
)
from tests.fakes import FakeHost


def _yes(*args) -> bool:
    return True


def _no(*args) -> bool:
    return False


def _first(candidates: list[Path]) -> int:
    return 0


@pytest.fixture
def replayer(host: FakeHost) -> UndoReplayer:
    return UndoReplayer(host.registry)


def _uninstall(replayer, tmp_path, confirm=_yes, confirm_delete=_no, **kwargs):
    return run_uninstall(
        replayer=replayer,
        confirm=confirm,
        confirm_delete=confirm_delete,
        choose=_first,
        work_dir=tmp_path,
        **kwargs,
    )


class TestExitCodes:
    def test_replay_with_failures_still_exits_ok(self, replayer, host, write_log, tmp_path):
        write_log(["a", "b"], name="undo-commands-2024-01-01-120000.txt")
        host.shell.set_failure("undo:2")

        result = _uninstall(replayer, tmp_path)

        assert result.exit_code == EXIT_OK
        assert result.report.counts == (1, 1)
        assert result.status == "partial"

    def test_cancelled(self, replayer, host, write_log, tmp_path):
        write_log(["a"], name="undo-commands-2024-01-01-120000.txt")

        result = _uninstall(replayer, tmp_path, confirm=_no)

        assert result.exit_code == EXIT_CANCELLED
        assert result.cancelled
        assert host.shell.call_count == 0

    def test_no_logs_is_fatal(self, replayer, tmp_path):
        result = _uninstall(replayer, tmp_path)
        assert result.exit_code == EXIT_FATAL
        assert result.report is None
        assert "No undo files" in result.error

    def test_missing_explicit_log_is_fatal(self, replayer, host, tmp_path):
        result = _uninstall(replayer, tmp_path, undo_file=tmp_path / "gone.txt")
        assert result.exit_code == EXIT_FATAL
        assert "Undo file not found" in result.error
        assert host.shell.call_count == 0


class TestDeletion:
    def test_delete_offered_with_report(self, replayer, write_log, tmp_path):
        log = write_log(["a"], name="undo-commands-2024-01-01-120000.txt")
        offered: list[tuple[Path, ReplayReport]] = []

        def confirm_delete(path: Path, report: ReplayReport) -> bool:
            offered.append((path, report))
            return True

        result = _uninstall(replayer, tmp_path, confirm_delete=confirm_delete)

        assert offered[0][0] == log.path
        assert offered[0][1].counts == (1, 0)
        assert result.deleted is True
        assert not log.exists()

    def test_declined_delete_keeps_log(self, replayer, write_log, tmp_path):
        log = write_log(["a"], name="undo-commands-2024-01-01-120000.txt")
        result = _uninstall(replayer, tmp_path)
        assert result.deleted is None
        assert log.exists()

    def test_not_offered_when_cancelled(self, replayer, write_log, tmp_path):
        write_log(["a"], name="undo-commands-2024-01-01-120000.txt")
        asked = []
        _uninstall(replayer, tmp_path, confirm=_no, confirm_delete=lambda p, r: asked.append(p))
        assert asked == []


class TestAudit:
    def test_audit_entry_for_replay(self, replayer, host, write_log, tmp_path):
        write_log(["a", "b"], name="undo-commands-2024-01-01-120000.txt")
        host.shell.set_failure("undo:2", return_code=100)
        writer = AuditWriter(work_dir=tmp_path)

        result = _uninstall(replayer, tmp_path, audit_writer=writer)

        [entry] = writer.read_all()
        assert entry.operation_id == result.operation_id
        assert entry.operation_type == "uninstall"
        assert entry.actions_total == 2
        assert entry.actions_succeeded == 1
        assert entry.errors == ["b (exit 100)"]

    def test_audit_entry_for_fatal(self, replayer, tmp_path):
        writer = AuditWriter(work_dir=tmp_path)
        _uninstall(replayer, tmp_path, audit_writer=writer)
        [entry] = writer.read_all()
        assert entry.status == "failed"
        assert entry.actions_total == 0


class TestUnreadableLog:
    def test_non_utf8_log_is_fatal(self, replayer, host, tmp_path):
        log = tmp_path / "undo-commands-2024-01-01-120000.txt"
        log.write_bytes(b"alpha-cmd\n\xff\xfe bad\n")

        result = _uninstall(replayer, tmp_path, undo_file=log)

        assert result.exit_code == EXIT_FATAL
        assert "Cannot read undo file" in result.error
        assert host.shell.call_count == 0
        assert result.deleted is None
