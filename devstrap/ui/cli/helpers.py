"""
Shared CLI helpers — config resolution and result rendering.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from devstrap.core.config.loader import ConfigError, find_config_file, load_config, resolve_work_dir
from devstrap.core.models.profile import DevstrapConfig

# status → (icon, color)
STATUS_STYLES = {
    "done": ("✓", "green"),
    "ok": ("✓", "green"),
    "unchanged": ("⊘", "cyan"),
    "skipped": ("⊘", "yellow"),
    "partial": ("⚠️ ", "yellow"),
    "cancelled": ("⊘", "yellow"),
    "failed": ("✗", "red"),
}


def load_cli_config(ctx: click.Context) -> tuple[DevstrapConfig, Path | None, Path]:
    """Load config for a command: (config, config_path, work_dir).

    Exits with status 1 on an invalid or missing explicit config.
    """
    config_path: Path | None = ctx.obj.get("config_path") or find_config_file()
    try:
        config = load_config(config_path, search=False)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    work_dir = resolve_work_dir(config, config_path)
    work_dir.mkdir(parents=True, exist_ok=True)
    return config, config_path, work_dir


def style_for(status: str) -> tuple[str, str]:
    return STATUS_STYLES.get(status, ("•", "white"))
