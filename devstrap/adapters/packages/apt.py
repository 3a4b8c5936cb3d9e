"""
Apt adapter — Debian/Ubuntu package operations.

Operations go through the package-manager catalog so the commands
setup runs and the removal commands it records stay in one place.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import time

from devstrap.adapters.base import Adapter, ExecutionContext
from devstrap.core.data.package_managers import render
from devstrap.core.models.action import Receipt

logger = logging.getLogger(__name__)

_MANAGER = "apt"


class AptAdapter(Adapter):
    """Package index refresh, install-state query, and install via apt.

    Action params:
        operation (str): One of 'update', 'is_installed', 'install'.
        package (str): Package name (for 'is_installed' and 'install').
        timeout (int): Timeout in seconds (default: context.timeout).
    """

    OPERATIONS = {"update", "is_installed", "install"}

    @property
    def name(self) -> str:
        return "apt"

    def is_available(self) -> bool:
        return shutil.which("apt-get") is not None and shutil.which("dpkg-query") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.action.params.get("operation", "")
        if operation not in self.OPERATIONS:
            return False, (
                f"Unknown operation '{operation}'. "
                f"Valid: {', '.join(sorted(self.OPERATIONS))}"
            )
        if operation != "update" and not context.action.params.get("package"):
            return False, f"Missing required param: 'package' for {operation} operation"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = context.action.params["operation"]
        package = context.action.params.get("package", "")
        if operation == "is_installed":
            return self._is_installed(context, package)
        return self._run(context, render(_MANAGER, operation, package))

    def _is_installed(self, ctx: ExecutionContext, package: str) -> Receipt:
        """Success either way; ``metadata.installed`` carries the answer."""
        argv = render(_MANAGER, "query", package)
        try:
            result = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=30,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=f"Package query failed: {e}",
                metadata={"package": package},
            )

        status = result.stdout.strip()
        installed = result.returncode == 0 and status.split()[-1:] == ["installed"]
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=status,
            metadata={"package": package, "installed": installed},
        )

    def _run(self, ctx: ExecutionContext, argv: list[str]) -> Receipt:
        timeout = ctx.action.params.get("timeout", ctx.timeout)
        command = " ".join(argv)
        logger.debug("Executing: %s", command)
        start = time.monotonic()
        try:
            result = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=f"Command timed out after {timeout}s",
                metadata={"command": command},
            )
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=f"Command execution error: {e}",
                metadata={"command": command},
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        if result.returncode == 0:
            return Receipt.success(
                adapter=self.name,
                action_id=ctx.action.id,
                output=result.stdout[-2000:].strip(),
                duration_ms=elapsed_ms,
                return_code=0,
                metadata={"command": command},
            )
        return Receipt.failure(
            adapter=self.name,
            action_id=ctx.action.id,
            error=result.stderr[-2000:].strip() or f"Command exited with code {result.returncode}",
            duration_ms=elapsed_ms,
            return_code=result.returncode,
            metadata={"command": command},
        )
