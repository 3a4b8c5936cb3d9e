"""
CLI command for the uninstall flow.

Thin wrapper over ``devstrap.core.use_cases.uninstall``. The bulk
confirmation before replay is always asked; there is no flag to skip it.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path

import click

from devstrap.core.engine.replayer import ReplayOutcome, ReplayReport
from devstrap.ui.cli.helpers import style_for

logger = logging.getLogger(__name__)


def _confirm_entries(entries: list[str]) -> bool:
    click.secho("\nThis will undo the following actions:", fg="yellow", bold=True)
    for command in entries:
        click.echo(f"   {command}")
    click.echo()
    return click.confirm("Do you want to proceed?", default=False)


def _confirm_delete(path: Path, report: ReplayReport) -> bool:
    _echo_summary(report)
    return click.confirm(f"Delete the undo file ({path})?", default=False)


def _echo_summary(report: ReplayReport) -> None:
    click.echo()
    icon, color = style_for(report.status)
    click.secho(f"   {icon} Uninstall completed!", fg=color, bold=True)
    click.echo(f"   Commands executed successfully: {report.succeeded}")
    click.echo(f"   Commands with errors: {report.failed}")
    if report.needs_followup:
        click.secho("   Some commands failed. You may need to manually undo some changes.", fg="yellow")
    click.echo()


def _choose_log(candidates: list[Path]) -> int:
    click.secho("Multiple undo files found:", fg="yellow")
    for i, path in enumerate(candidates, start=1):
        modified = datetime.fromtimestamp(path.stat().st_mtime).strftime("%Y-%m-%d %H:%M:%S")
        click.echo(f"   {i}. {path.name} ({modified})")
    selection = click.prompt(
        f"Select which undo file to use (1-{len(candidates)})",
        type=click.IntRange(1, len(candidates)),
    )
    return selection - 1


def _echo_outcome(outcome: ReplayOutcome) -> None:
    if outcome.ok:
        click.secho("   ✓ ", fg="green", nl=False)
        click.echo(outcome.command)
    else:
        click.secho("   ✗ ", fg="red", nl=False)
        click.echo(f"{outcome.command} (exit code: {outcome.signal})")


@click.command()
@click.option(
    "--undo-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Undo file to replay (default: discover in the work dir).",
)
@click.option("--log-pattern", default=None, help="Glob for setup logs (default: setup-log-*.txt).")
@click.option("--mock", is_flag=True, help="Use mock adapter (no real execution).")
@click.pass_context
def uninstall(ctx: click.Context, undo_file: Path | None, log_pattern: str | None, mock: bool) -> None:
    """Undo the changes recorded by a previous setup run.

    Examples:

        devstrap uninstall

        devstrap uninstall --undo-file undo-commands-2024-01-01-120000.txt
    """
    from devstrap.adapters.registry import build_registry
    from devstrap.core.engine.replayer import UndoReplayer
    from devstrap.core.observability.logging_config import attach_run_log, detach_run_log
    from devstrap.core.persistence.audit import AuditWriter
    from devstrap.core.persistence.undo_log import run_timestamp
    from devstrap.core.use_cases.uninstall import run_uninstall
    from devstrap.ui.cli.helpers import load_cli_config

    config, _config_path, work_dir = load_cli_config(ctx)

    run_log = work_dir / f"uninstall-log-{run_timestamp()}.txt"
    handler = attach_run_log(run_log)

    try:
        replayer = UndoReplayer(
            build_registry(mock=mock),
            work_dir=str(work_dir),
            timeout=config.settings.command_timeout,
        )
        result = run_uninstall(
            replayer=replayer,
            confirm=_confirm_entries,
            confirm_delete=_confirm_delete,
            choose=_choose_log,
            undo_file=undo_file,
            work_dir=work_dir,
            undo_pattern=config.settings.undo_pattern,
            setup_log_pattern=log_pattern or config.settings.setup_log_pattern,
            on_outcome=_echo_outcome,
            audit_writer=AuditWriter(work_dir=work_dir),
        )
        logger.info("Uninstall log saved: %s", run_log)
    finally:
        detach_run_log(handler)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(result.exit_code)

    report = result.report
    assert report is not None

    if report.cancelled:
        click.secho("Uninstall cancelled by user", fg="yellow")
        sys.exit(result.exit_code)

    if result.deleted is True:
        click.echo(f"   Undo file deleted: {result.log_path}")
    elif result.deleted is False:
        click.secho(f"   Failed to delete undo file: {result.log_path}", fg="red")
    click.echo(f"   Log file: {run_log}")
    click.echo()
