"""
Tests for undo-log discovery.
"""

import os
from pathlib import Path

import pytest

from devstrap.core.services.discovery import NoUndoLogsError, find_logs, resolve_undo_log

UNDO = "undo-commands-*.txt"
SETUP = "setup-log-*.txt"


def _touch(path: Path, mtime: int) -> Path:
    path.write_text("echo x\n")
    os.utime(path, (mtime, mtime))
    return path


def _never_called(candidates: list[Path]) -> int:
    raise AssertionError("chooser should not be called")


class TestFindLogs:
    def test_newest_first(self, tmp_path: Path):
        old = _touch(tmp_path / "undo-commands-a.txt", 1_000)
        new = _touch(tmp_path / "undo-commands-b.txt", 2_000)
        assert find_logs(tmp_path, UNDO) == [new, old]

    def test_ignores_other_files(self, tmp_path: Path):
        _touch(tmp_path / "notes.txt", 1_000)
        (tmp_path / "undo-commands-dir.txt").mkdir()
        assert find_logs(tmp_path, UNDO) == []

    def test_missing_directory(self, tmp_path: Path):
        assert find_logs(tmp_path / "nope", UNDO) == []


class TestResolveUndoLog:
    def test_explicit_path_wins(self, tmp_path: Path):
        _touch(tmp_path / "undo-commands-a.txt", 1_000)
        explicit = tmp_path / "elsewhere.txt"
        assert resolve_undo_log(explicit, tmp_path, UNDO, SETUP, _never_called) == explicit

    def test_single_candidate_auto_selected(self, tmp_path: Path):
        only = _touch(tmp_path / "undo-commands-a.txt", 1_000)
        assert resolve_undo_log(None, tmp_path, UNDO, SETUP, _never_called) == only

    def test_several_candidates_go_to_chooser(self, tmp_path: Path):
        old = _touch(tmp_path / "undo-commands-a.txt", 1_000)
        new = _touch(tmp_path / "undo-commands-b.txt", 2_000)
        offered = []

        def choose(candidates: list[Path]) -> int:
            offered.extend(candidates)
            return 1

        assert resolve_undo_log(None, tmp_path, UNDO, SETUP, choose) == old
        assert offered == [new, old]

    def test_out_of_range_choice(self, tmp_path: Path):
        _touch(tmp_path / "undo-commands-a.txt", 1_000)
        _touch(tmp_path / "undo-commands-b.txt", 2_000)
        with pytest.raises(ValueError):
            resolve_undo_log(None, tmp_path, UNDO, SETUP, lambda c: 5)

    def test_setup_logs_without_undo_logs(self, tmp_path: Path):
        log = _touch(tmp_path / "setup-log-2024-01-01-120000.txt", 1_000)
        with pytest.raises(NoUndoLogsError) as exc:
            resolve_undo_log(None, tmp_path, UNDO, SETUP, _never_called)
        assert str(exc.value).startswith("Found setup logs but no undo files")
        assert exc.value.setup_logs == [log]

    def test_nothing_found(self, tmp_path: Path):
        with pytest.raises(NoUndoLogsError) as exc:
            resolve_undo_log(None, tmp_path, UNDO, SETUP, _never_called)
        assert str(exc.value).startswith("No undo files or setup logs found")
        assert exc.value.setup_logs == []
