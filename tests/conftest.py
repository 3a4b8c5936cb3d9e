"""
Shared test fixtures and configuration.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from devstrap.core.engine.recorder import ActionRecorder
from devstrap.core.persistence.undo_log import UndoLog
from tests.fakes import FakeHost


@pytest.fixture
def as_user(monkeypatch: pytest.MonkeyPatch) -> None:
    """Pretend to run as a regular user, so privileged commands get sudo."""
    monkeypatch.setattr("os.geteuid", lambda: 1000)


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def undo_log(tmp_path: Path) -> UndoLog:
    return UndoLog(tmp_path / "undo-commands-2024-01-01-120000.txt")


@pytest.fixture
def recorder(undo_log: UndoLog) -> ActionRecorder:
    return ActionRecorder(undo_log)


@pytest.fixture
def write_log(tmp_path: Path):
    """Write an undo log with the given raw lines and return its handle."""

    def _write(lines: list[str], name: str = "undo-commands-test.txt") -> UndoLog:
        path = tmp_path / name
        path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
        return UndoLog(path)

    return _write
