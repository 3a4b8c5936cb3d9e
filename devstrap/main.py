"""
devstrap — CLI entrypoint.

Usage:
    python -m devstrap.main --help
    devstrap setup
    devstrap uninstall --undo-file undo-commands-2024-01-01-120000.txt
    devstrap history
    devstrap config check
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from devstrap import __version__
from devstrap.core.observability.logging_config import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="devstrap")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to devstrap.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """devstrap — bootstrap a developer machine, and undo it later."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("DEVSTRAP_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("DEVSTRAP_LOG_FILE"),
        log_file_level=os.environ.get("DEVSTRAP_LOG_FILE_LEVEL"),
        quiet_third_party=not debug,
    )


@cli.group()
def config() -> None:
    """Configuration commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate devstrap.yml configuration."""
    from devstrap.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.valid:
        assert result.config is not None  # guaranteed when valid
        profile = result.config.profile
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        click.echo(f"   Profile: {profile.name}")
        click.echo(f"   Packages: {len(profile.packages)}")
        click.echo(f"   Git settings: {len(profile.git_settings())}")
        click.echo(f"   Editor: {'enabled' if profile.editor.enabled else 'disabled'}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(1)

    click.echo()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--limit", "-n", default=10, type=int, help="Number of recent runs to show.")
@click.pass_context
def history(ctx: click.Context, as_json: bool, limit: int) -> None:
    """Show recorded undo files and recent runs."""
    from devstrap.core.persistence.audit import AuditWriter
    from devstrap.core.persistence.undo_log import UndoLog, UndoLogError
    from devstrap.core.services.discovery import find_logs
    from devstrap.ui.cli.helpers import load_cli_config, style_for

    cfg, _config_path, work_dir = load_cli_config(ctx)
    undo_logs = []
    unreadable = []
    for path in find_logs(work_dir, cfg.settings.undo_pattern):
        try:
            entries = UndoLog(path).read_entries()
        except UndoLogError as e:
            unreadable.append({"path": str(path), "error": str(e)})
            continue
        undo_logs.append({"path": str(path), "entries": len(entries)})
    runs = AuditWriter(work_dir=work_dir).read_recent(limit)

    if as_json:
        click.echo(json.dumps(
            {
                "work_dir": str(work_dir),
                "undo_logs": undo_logs,
                "unreadable": unreadable,
                "runs": [r.model_dump(mode="json") for r in runs],
            },
            indent=2,
        ))
        return

    click.secho(f"\n📜 Undo files in {work_dir}", fg="cyan", bold=True)
    if not undo_logs:
        click.echo("   No reversible actions are recorded.")
    for item in undo_logs:
        click.echo(f"   • {Path(item['path']).name}  ({item['entries']} commands)")
    for item in unreadable:
        click.secho(f"   ⚠️  {Path(item['path']).name}  (unreadable, skipped)", fg="yellow")

    if runs:
        click.echo()
        click.secho("   Recent runs:", fg="white", bold=True)
        for run in reversed(runs):
            icon, color = style_for(run.status)
            click.secho(f"   {icon} ", fg=color, nl=False)
            click.echo(
                f"{run.operation_type:<9} {run.status:<9} "
                f"{run.actions_succeeded}/{run.actions_total} ok  at {run.timestamp}"
            )

    click.echo()


# ── Register sub-commands from devstrap/ui/cli/ ────────────────────

from devstrap.ui.cli.setup import setup  # noqa: E402
from devstrap.ui.cli.uninstall import uninstall  # noqa: E402

cli.add_command(setup)
cli.add_command(uninstall)


if __name__ == "__main__":
    cli()
