"""
Package-manager command catalog.

Maps each supported package manager to its update, query, install,
and remove commands. ``remove`` is the reverse of ``install`` and is
what lands in the undo log. Templates use a ``{package}`` placeholder.
"""

from __future__ import annotations

import os
import shlex

PACKAGE_COMMANDS: dict[str, dict] = {
    "apt": {
        "update": ["apt-get", "update"],
        "query": ["dpkg-query", "-W", "-f=${Status}", "{package}"],
        "install": ["apt-get", "install", "-y", "{package}"],
        "remove": ["apt-get", "remove", "-y", "{package}"],
        "needs_sudo": True,
    },
}


def needs_sudo_prefix() -> bool:
    """Whether privileged commands must go through sudo (not already root)."""
    return os.geteuid() != 0


def render(manager: str, operation: str, package: str = "") -> list[str]:
    """Build the argv for one package-manager operation.

    Privileged operations are prefixed with ``sudo`` unless running as root.
    ``query`` is never privileged.

    Raises:
        KeyError: If the manager or operation is unknown.
    """
    spec = PACKAGE_COMMANDS[manager]
    cmd = [part.replace("{package}", package) for part in spec[operation]]
    if operation != "query" and spec["needs_sudo"] and needs_sudo_prefix():
        cmd = ["sudo", *cmd]
    return cmd


def remove_command(manager: str, package: str) -> str:
    """Shell command that uninstalls ``package``, for the undo log."""
    return shlex.join(render(manager, "remove", package))
