"""
CLI command for the setup flow.

Thin wrapper over ``devstrap.core.use_cases.setup``: prompts go
through click, every step is echoed as it completes, and the run
is written to ``setup-log-<ts>.txt`` in the work dir.
"""

from __future__ import annotations

import logging
import os
import sys
import tempfile
from pathlib import Path

import click

from devstrap.core.use_cases.setup import Prompter, StepResult
from devstrap.ui.cli.helpers import style_for

logger = logging.getLogger(__name__)


class ClickPrompter(Prompter):
    """Ask the operator on the terminal."""

    def is_terminal_only(self) -> bool:
        return click.confirm("Is this a terminal-only computer?", default=False)

    def overwrite(self, key: str, existing: str, target: str) -> str:
        click.secho(f"⚠️  Existing value for '{key}': {existing}", fg="yellow")
        answer = click.prompt(
            f"Overwrite with '{target}'? (y/n/s to skip)",
            type=click.Choice([self.YES, self.NO, self.SKIP], case_sensitive=False),
            show_choices=False,
        )
        return answer.lower()


def _running_as_root() -> bool:
    return os.geteuid() == 0


def _echo_step(step: StepResult) -> None:
    icon, color = style_for(step.status)
    click.secho(f"   {icon} ", fg=color, nl=False)
    click.echo(step.message)


@click.command()
@click.option("--force", is_flag=True, help="Apply every value without asking.")
@click.option("--mock", is_flag=True, help="Use mock adapter (no real execution).")
@click.pass_context
def setup(ctx: click.Context, force: bool, mock: bool) -> None:
    """Install developer tools and configure git, recording how to undo it.

    Examples:

        devstrap setup

        devstrap setup --force
    """
    from devstrap.adapters.registry import build_registry
    from devstrap.core.engine.recorder import ActionRecorder
    from devstrap.core.observability.logging_config import attach_run_log, detach_run_log
    from devstrap.core.persistence.audit import AuditWriter
    from devstrap.core.persistence.undo_log import new_undo_log, run_timestamp
    from devstrap.core.use_cases.setup import run_setup
    from devstrap.ui.cli.helpers import load_cli_config

    config, _config_path, work_dir = load_cli_config(ctx)

    if _running_as_root():
        click.secho("⚠️  Running as root is not recommended", fg="yellow")
        if not click.confirm("Continue anyway?", default=False):
            click.echo("Setup cancelled by user")
            sys.exit(1)

    timestamp = run_timestamp()
    run_log = work_dir / f"setup-log-{timestamp}.txt"
    # Mock runs change nothing, so their undo log must never be discoverable
    scratch = tempfile.TemporaryDirectory(prefix="devstrap-mock-") if mock else None
    undo_log = new_undo_log(Path(scratch.name) if scratch else work_dir, timestamp)
    handler = attach_run_log(run_log)

    try:
        mode_label = "[mock] " if mock else ""
        click.secho(f"\n⚡ {mode_label}Setting up {config.profile.name} profile", fg="cyan", bold=True)
        logger.info("Log file: %s", run_log)
        logger.info("Undo file: %s", undo_log.path)
        click.echo()

        result = run_setup(
            config=config,
            registry=build_registry(mock=mock),
            recorder=ActionRecorder(undo_log, package_manager=config.settings.package_manager),
            prompter=ClickPrompter(),
            force=force,
            work_dir=work_dir,
            on_step=_echo_step,
            audit_writer=AuditWriter(work_dir=work_dir),
        )

        click.echo()
        if result.error:
            click.secho(f"❌ {result.error}", fg="red")

        icon, color = style_for(result.status)
        click.secho(
            f"   {icon} Result: {result.changed} changed, {result.failed} failed",
            fg=color,
            bold=True,
        )
        click.echo(f"   Log file: {run_log}")

        if result.recorded and mock:
            click.echo(f"   [mock] Would record {result.recorded} undo commands:")
            for command in undo_log.read_entries():
                click.echo(f"     {command}")
            click.echo("   No undo file was written.")
        elif result.recorded:
            click.echo(f"   Undo commands: {undo_log.path} ({result.recorded})")
            logger.info("Undo commands saved: %s", undo_log.path)
            click.echo()
            click.echo("   To undo all changes, run:")
            click.secho(f"     devstrap uninstall --undo-file \"{undo_log.path}\"", bold=True)
        else:
            click.echo("   Nothing to undo — no changes were recorded.")
        click.echo()
    finally:
        detach_run_log(handler)
        if scratch is not None:
            scratch.cleanup()

    if result.error:
        sys.exit(1)
