"""
Setup use case — bootstrap the machine and record how to undo it.

Flow:
    refresh package index → install packages → install editor
    → configure git identity → configure git aliases

Every mutation that succeeds is followed by exactly one call to the
ActionRecorder with the command that restores the previous state.
Nothing is recorded for a step that was already satisfied, skipped,
declined by the operator, or that failed.
"""

from __future__ import annotations

import logging
import shlex
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from devstrap.adapters.registry import AdapterRegistry
from devstrap.core.data.package_managers import needs_sudo_prefix
from devstrap.core.engine.recorder import ActionRecorder
from devstrap.core.models.action import Action, Receipt
from devstrap.core.models.profile import DevstrapConfig, EditorSpec, PackageSpec
from devstrap.core.persistence.audit import AuditEntry, AuditWriter, generate_operation_id

logger = logging.getLogger(__name__)

# Temporary file the editor signing key is dearmored into
_EDITOR_KEY_TMP = "packages.microsoft.gpg"


class Prompter(ABC):
    """Operator decisions during setup."""

    YES = "y"
    NO = "n"
    SKIP = "s"

    @abstractmethod
    def is_terminal_only(self) -> bool:
        """Whether this machine has no desktop (the editor is skipped)."""

    @abstractmethod
    def overwrite(self, key: str, existing: str, target: str) -> str:
        """Answer YES, NO, or SKIP to replacing an existing git config value."""


@dataclass
class StepResult:
    """Outcome of one setup step."""

    kind: str            # index, package, editor, git
    target: str
    status: str          # done, unchanged, skipped, failed
    message: str = ""

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "target": self.target,
            "status": self.status,
            "message": self.message,
        }


@dataclass
class SetupResult:
    """Result of a setup run."""

    operation_id: str = ""
    steps: list[StepResult] = field(default_factory=list)
    undo_log: str = ""
    recorded: int = 0
    error: str | None = None
    duration_ms: int = 0

    @property
    def changed(self) -> int:
        return sum(1 for s in self.steps if s.status == "done")

    @property
    def failed(self) -> int:
        return sum(1 for s in self.steps if s.status == "failed")

    @property
    def status(self) -> str:
        if self.error:
            return "failed"
        if self.failed:
            return "partial"
        return "ok"

    def to_dict(self) -> dict:
        result: dict = {
            "operation_id": self.operation_id,
            "status": self.status,
            "changed": self.changed,
            "failed": self.failed,
            "recorded": self.recorded,
            "undo_log": self.undo_log if self.recorded else None,
            "steps": [s.to_dict() for s in self.steps],
        }
        if self.error:
            result["error"] = self.error
        return result


class _SetupRun:
    """State of one setup run: where to execute, what to record, whom to tell."""

    def __init__(
        self,
        registry: AdapterRegistry,
        recorder: ActionRecorder,
        result: SetupResult,
        work_dir: str,
        timeout: int,
        on_step: Callable[[StepResult], None] | None,
    ):
        self.registry = registry
        self.recorder = recorder
        self.result = result
        self.work_dir = work_dir
        self.timeout = timeout
        self.on_step = on_step

    def act(self, adapter: str, action_id: str, **params: object) -> Receipt:
        action = Action(id=action_id, adapter=adapter, params=dict(params))
        return self.registry.execute_action(
            action, work_dir=self.work_dir, timeout=self.timeout,
        )

    def command_exists(self, command: str) -> bool:
        receipt = self.act("shell", f"check:{command}", command=f"command -v {shlex.quote(command)}")
        return receipt.ok

    def step(self, kind: str, target: str, status: str, message: str) -> StepResult:
        step = StepResult(kind=kind, target=target, status=status, message=message)
        self.result.steps.append(step)
        if status == "failed":
            logger.error(message)
        else:
            logger.info(message)
        if self.on_step is not None:
            self.on_step(step)
        return step


def run_setup(
    config: DevstrapConfig,
    registry: AdapterRegistry,
    recorder: ActionRecorder,
    prompter: Prompter,
    force: bool = False,
    work_dir: Path | None = None,
    on_step: Callable[[StepResult], None] | None = None,
    audit_writer: AuditWriter | None = None,
) -> SetupResult:
    """Apply the configured profile to the host.

    Args:
        config: Loaded devstrap configuration.
        registry: Adapter registry for all host operations.
        recorder: Receives the inverse of every successful mutation.
        prompter: Operator decisions (editor, overwrites).
        force: Apply every value without asking, even unchanged ones.
        work_dir: Working directory for shell steps (default: cwd).
        on_step: Called after each step, for live reporting.
        audit_writer: Optional ledger for the run summary.

    Returns:
        SetupResult. ``error`` is set when a fatal precondition failed.
    """
    start = time.monotonic()
    result = SetupResult(
        operation_id=generate_operation_id("setup"),
        undo_log=str(recorder.undo_log.path),
    )
    run = _SetupRun(
        registry=registry,
        recorder=recorder,
        result=result,
        work_dir=str(work_dir or Path.cwd()),
        timeout=config.settings.command_timeout,
        on_step=on_step,
    )
    profile = config.profile

    logger.info("Starting development environment setup (profile: %s)", profile.name)

    if _refresh_index(run):
        for package in profile.packages:
            _install_package(run, package)

        if profile.editor.enabled:
            _install_editor(run, profile.editor, force, prompter)

        if not registry.is_available("git"):
            result.error = (
                "Git is not available after installation. Please check your installation."
            )
            logger.error(result.error)
            logger.warning("Skipping git configuration...")
        else:
            for key, target in profile.git_settings():
                _configure_git(run, key, target, force, prompter)

    result.recorded = recorder.recorded
    result.duration_ms = int((time.monotonic() - start) * 1000)

    if result.status == "ok":
        logger.info("Setup completed successfully!")
    else:
        logger.warning("Setup completed with status: %s", result.status)

    if audit_writer is not None:
        audit_writer.write(
            AuditEntry(
                operation_id=result.operation_id,
                operation_type="setup",
                status=result.status,
                actions_total=len(result.steps),
                actions_succeeded=result.changed,
                actions_failed=result.failed,
                duration_ms=result.duration_ms,
                errors=[s.message for s in result.steps if s.status == "failed"]
                + ([result.error] if result.error else []),
                context={"undo_log": result.undo_log if result.recorded else None},
            )
        )

    return result


# ── Steps ───────────────────────────────────────────────────────


def _refresh_index(run: _SetupRun) -> bool:
    logger.info("Updating package list...")
    receipt = run.act("apt", "apt:update", operation="update")
    if receipt.failed:
        run.result.error = f"Failed to update package list: {receipt.error}"
        run.step("index", "package list", "failed", run.result.error)
        return False
    run.step("index", "package list", "done", "Package list updated successfully")
    return True


def _install_package(run: _SetupRun, package: PackageSpec) -> None:
    label = package.label

    if package.only_if_missing and run.command_exists(package.only_if_missing):
        run.step(
            "package", package.name, "skipped",
            f"{label} not needed: '{package.only_if_missing}' is already available",
        )
        return

    logger.info("Installing %s...", label)
    query = run.act("apt", f"apt:is_installed:{package.name}", operation="is_installed", package=package.name)
    if query.failed:
        logger.warning("Could not query %s install state: %s", package.name, query.error)
    elif query.metadata.get("installed"):
        run.step("package", package.name, "unchanged", f"{label} is already installed")
        return

    receipt = run.act("apt", f"apt:install:{package.name}", operation="install", package=package.name)
    if receipt.failed:
        run.step("package", package.name, "failed", f"Failed to install {label}: {receipt.error}")
        return

    run.recorder.record_package_install(package.name)
    run.step("package", package.name, "done", f"{label} installed successfully")


def _install_editor(run: _SetupRun, editor: EditorSpec, force: bool, prompter: Prompter) -> None:
    logger.info("Checking if Visual Studio Code should be installed...")

    if not force and prompter.is_terminal_only():
        run.step(
            "editor", editor.package, "skipped",
            "Skipping Visual Studio Code installation for terminal-only computer",
        )
        return

    if run.command_exists(editor.command):
        run.step("editor", editor.package, "unchanged", "Visual Studio Code is already installed")
        return

    logger.info("Installing Visual Studio Code...")
    sudo = "sudo " if needs_sudo_prefix() else ""
    tmp_key = Path(run.work_dir) / _EDITOR_KEY_TMP

    try:
        fetch = run.act(
            "shell", "editor:fetch-key",
            command=f"curl -fsSL {shlex.quote(editor.key_url)} | gpg --dearmor > {shlex.quote(str(tmp_key))}",
        )
        if fetch.failed:
            run.step(
                "editor", editor.package, "failed",
                f"Failed to add Microsoft repository for VS Code: {fetch.error}",
            )
            return

        key = run.act(
            "shell", "editor:install-key",
            command=(
                f"{sudo}install -o root -g root -m 644 "
                f"{shlex.quote(str(tmp_key))} {shlex.quote(editor.keyring)}"
            ),
        )
        if key.failed:
            run.step("editor", editor.package, "failed", f"Failed to install signing key: {key.error}")
            return
        run.recorder.record_file_created(editor.keyring)

        sources = run.act(
            "shell", "editor:sources-list",
            command=(
                f"echo {shlex.quote(editor.repo_line)} | "
                f"{sudo}tee {shlex.quote(editor.sources_list)} > /dev/null"
            ),
        )
        if sources.failed:
            run.step("editor", editor.package, "failed", f"Failed to add apt repository: {sources.error}")
            return
        run.recorder.record_file_created(editor.sources_list)

        refresh = run.act("apt", "apt:update:editor", operation="update")
        if refresh.failed:
            logger.warning("Package list refresh after adding repository failed: %s", refresh.error)

        install = run.act("apt", f"apt:install:{editor.package}", operation="install", package=editor.package)
        if install.failed:
            run.step("editor", editor.package, "failed", f"Failed to install Visual Studio Code: {install.error}")
            return
        run.recorder.record_package_install(editor.package)
        run.step("editor", editor.package, "done", "Visual Studio Code installed successfully")
    finally:
        tmp_key.unlink(missing_ok=True)


def _configure_git(run: _SetupRun, key: str, target: str, force: bool, prompter: Prompter) -> None:
    current = run.act("git", f"git:get:{key}", operation="get", key=key)
    if current.failed:
        run.step("git", key, "failed", f"Could not read git config '{key}': {current.error}")
        return
    existing = current.output

    if existing and not force:
        if existing == target:
            run.step("git", key, "unchanged", f"Git config '{key}' already set to: {target}")
            return

        logger.warning("Existing git config '%s' found: %s", key, existing)
        answer = prompter.overwrite(key, existing, target)
        if answer == Prompter.SKIP:
            run.step("git", key, "skipped", f"Skipping git config '{key}'")
            return
        if answer != Prompter.YES:
            run.step("git", key, "skipped", f"Keeping existing git config '{key}': {existing}")
            return

    receipt = run.act("git", f"git:set:{key}", operation="set", key=key, value=target)
    if receipt.failed:
        run.step("git", key, "failed", f"Failed to set git config '{key}': {receipt.error}")
        return

    run.recorder.record_config_change(key, existing)
    run.step("git", key, "done", f"Git config '{key}' set to: {target}")
