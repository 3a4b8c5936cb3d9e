"""
Tests for the undo replayer — ordering, counting, cancellation, deletion.
"""

from pathlib import Path

import pytest

from devstrap.adapters.mock import MockAdapter
from devstrap.adapters.registry import AdapterRegistry
from devstrap.adapters.shell.command import ShellCommandAdapter
from devstrap.core.engine.recorder import ActionRecorder
from devstrap.core.engine.replayer import ReplayReport, UndoReplayer
from devstrap.core.persistence.undo_log import UndoLog, UndoLogNotFoundError, UndoLogReadError


def _always_yes(entries: list[str]) -> bool:
    return True


def _always_no(entries: list[str]) -> bool:
    return False


@pytest.fixture
def shell() -> MockAdapter:
    return MockAdapter(adapter_name="shell", default_output="")


@pytest.fixture
def replayer(shell: MockAdapter) -> UndoReplayer:
    registry = AdapterRegistry()
    registry.register(shell)
    return UndoReplayer(registry)


# ── Counting ─────────────────────────────────────────────────────────


class TestReplayCounts:
    @pytest.mark.parametrize("n", [0, 1, 7])
    def test_all_succeed(self, n: int, replayer: UndoReplayer, shell: MockAdapter, write_log):
        log = write_log([f"cmd-{i}" for i in range(n)])
        report = replayer.replay(log, confirm=_always_yes)
        assert report.counts == (n, 0)
        assert shell.call_count == n

    def test_mixed_every_entry_attempted_once(self, replayer, shell, write_log):
        log = write_log([f"cmd-{i}" for i in range(1, 6)])
        shell.set_failure("undo:2")
        shell.set_failure("undo:4")

        report = replayer.replay(log, confirm=_always_yes)

        assert report.counts == (3, 2)
        assert report.succeeded + report.failed == 5
        assert shell.commands == ["cmd-1", "cmd-2", "cmd-3", "cmd-4", "cmd-5"]
        assert report.status == "partial"

    def test_all_fail(self, replayer, shell, write_log):
        log = write_log(["a", "b"])
        shell.set_failure("undo:1")
        shell.set_failure("undo:2")
        report = replayer.replay(log, confirm=_always_yes)
        assert report.counts == (0, 2)
        assert report.status == "failed"
        assert report.needs_followup

    def test_blank_lines_never_attempted(self, replayer, shell, write_log):
        log = write_log(["", "one", "   ", "", "two", ""])
        report = replayer.replay(log, confirm=_always_yes)
        assert report.attempted == 2
        assert shell.commands == ["one", "two"]

    def test_alpha_beta_scenario(self, replayer, shell, write_log):
        log = write_log(["alpha-cmd", "", "beta-cmd"])
        shell.set_failure("undo:2", error="beta broke", return_code=2)

        report = replayer.replay(log, confirm=_always_yes)

        assert report.counts == (1, 1)
        assert report.attempted == 2
        assert shell.commands == ["alpha-cmd", "beta-cmd"]
        assert report.outcomes[1].signal == 2
        assert report.outcomes[0].signal is None


# ── Ordering and round trip ──────────────────────────────────────────


class TestReplayOrder:
    def test_forward_file_order(self, replayer, shell, write_log):
        log = write_log(["first", "second", "third"])
        replayer.replay(log, confirm=_always_yes)
        assert shell.commands == ["first", "second", "third"]

    def test_round_trip_literal_command(self, replayer, shell, undo_log):
        command = "git config --global user.name 'Jane Q. Dev'"
        ActionRecorder(undo_log).record(command)

        report = replayer.replay(undo_log, confirm=_always_yes)

        assert shell.call_count == 1
        assert shell.commands == [command]
        assert report.counts == (1, 0)

    def test_round_trip_restored_alias(self, replayer, shell, undo_log):
        recorder = ActionRecorder(undo_log)
        recorder.record_config_change("alias.x", "!f() { echo hi; }; f")

        report = replayer.replay(undo_log, confirm=_always_yes)

        assert report.attempted == 1
        assert shell.commands == ["git config --global alias.x '!f() { echo hi; }; f'"]

    def test_entries_run_through_shell_adapter(self, replayer, shell, write_log):
        log = write_log(["echo hi"])
        replayer.replay(log, confirm=_always_yes)
        action = shell.call_log[0].action
        assert action.adapter == "shell"
        assert action.id == "undo:1"


# ── Confirmation and preconditions ───────────────────────────────────


class TestReplayConfirmation:
    def test_confirm_sees_full_list(self, replayer, write_log):
        seen: list[list[str]] = []

        def confirm(entries: list[str]) -> bool:
            seen.append(list(entries))
            return True

        replayer.replay(write_log(["a", "", "b"]), confirm=confirm)
        assert seen == [["a", "b"]]

    def test_declined_runs_nothing(self, replayer, shell, write_log):
        report = replayer.replay(write_log(["a", "b"]), confirm=_always_no)
        assert shell.call_count == 0
        assert report.cancelled
        assert report.status == "cancelled"
        assert report.attempted == 0

    def test_declined_differs_from_empty_log(self, replayer, write_log):
        declined = replayer.replay(write_log(["a"], name="one.txt"), confirm=_always_no)
        empty = replayer.replay(write_log([], name="empty.txt"), confirm=_always_no)
        assert declined.status == "cancelled"
        assert empty.status == "ok"
        assert not empty.cancelled

    def test_empty_log_does_not_prompt(self, replayer, write_log):
        asked = []
        replayer.replay(write_log([]), confirm=lambda e: asked.append(e) or True)
        assert asked == []

    def test_missing_log_is_fatal(self, replayer, shell, tmp_path: Path):
        with pytest.raises(UndoLogNotFoundError):
            replayer.replay(UndoLog(tmp_path / "nope.txt"), confirm=_always_yes)
        assert shell.call_count == 0

    def test_unreadable_log_is_fatal(self, replayer, shell, tmp_path: Path):
        path = tmp_path / "undo-commands-bad.txt"
        path.write_bytes(b"alpha-cmd\n\xff\xfe bad\n")
        with pytest.raises(UndoLogReadError):
            replayer.replay(UndoLog(path), confirm=_always_yes)
        assert shell.call_count == 0

    def test_on_outcome_called_per_entry(self, replayer, write_log):
        seen = []
        replayer.replay(write_log(["a", "b", "c"]), confirm=_always_yes, on_outcome=seen.append)
        assert [o.index for o in seen] == [1, 2, 3]


# ── Deletion ─────────────────────────────────────────────────────────


class TestDeleteLog:
    def test_delete_consumed_log(self, replayer, write_log):
        log = write_log(["a"])
        assert replayer.delete_log(log) is True
        assert not log.exists()

    def test_delete_failure_is_not_raised(self, replayer, tmp_path: Path):
        assert replayer.delete_log(UndoLog(tmp_path / "gone.txt")) is False


# ── Report ───────────────────────────────────────────────────────────


class TestReplayReport:
    def test_to_dict(self, replayer, shell, write_log):
        shell.set_failure("undo:2", return_code=127)
        report = replayer.replay(write_log(["ok-cmd", "bad-cmd"]), confirm=_always_yes)
        data = report.to_dict()
        assert data["status"] == "partial"
        assert data["succeeded"] == 1
        assert data["failed"] == 1
        assert data["outcomes"][1] == {
            "index": 2,
            "command": "bad-cmd",
            "ok": False,
            "signal": 127,
            "error": "Mock failure",
        }

    def test_fresh_report_is_ok(self):
        assert ReplayReport().status == "ok"


# ── Real shell ───────────────────────────────────────────────────────


class TestReplayWithShell:
    def test_real_commands(self, tmp_path: Path, write_log):
        registry = AdapterRegistry()
        registry.register(ShellCommandAdapter())
        replayer = UndoReplayer(registry, work_dir=str(tmp_path), timeout=30)
        log = write_log(["true", "exit 3", "echo done > marker.txt"])

        report = replayer.replay(log, confirm=_always_yes)

        assert report.counts == (2, 1)
        assert report.outcomes[1].signal == 3
        assert (tmp_path / "marker.txt").read_text().strip() == "done"
