"""
Shell command adapter — execute arbitrary shell commands.

This is the command executor behind undo replay: every undo-log entry
is handed to the shell verbatim. Setup also uses it for the steps that
are pipelines rather than single tool calls (fetching a signing key,
writing an apt sources list).
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import time
from pathlib import Path

from devstrap.adapters.base import Adapter, ExecutionContext
from devstrap.core.models.action import Receipt

logger = logging.getLogger(__name__)


class ShellCommandAdapter(Adapter):
    """Execute shell commands and capture output.

    Action params:
        command (str): The command to execute.
        timeout (int): Timeout in seconds (default: context.timeout).
        cwd (str): Override working directory (default: context.work_dir).
    """

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self) -> bool:
        return shutil.which("sh") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        command = context.action.params.get("command", "")
        if not command.strip():
            return False, "Missing required param: 'command'"

        cwd = context.working_dir
        if cwd and not Path(cwd).is_dir():
            return False, f"Working directory does not exist: {cwd}"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        command = context.action.params.get("command", "")
        timeout = context.action.params.get("timeout", context.timeout)
        cwd = context.working_dir

        logger.debug("Executing: %s (cwd=%s)", command, cwd)
        start = time.monotonic()

        try:
            result = subprocess.run(
                command,
                shell=True,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=timeout,
            )

            elapsed_ms = int((time.monotonic() - start) * 1000)
            output = result.stdout.strip()
            stderr = result.stderr.strip()

            if result.returncode == 0:
                return Receipt.success(
                    adapter=self.name,
                    action_id=context.action.id,
                    output=output,
                    duration_ms=elapsed_ms,
                    return_code=0,
                    metadata={"command": command, "stderr": stderr},
                )
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=stderr or f"Command exited with code {result.returncode}",
                duration_ms=elapsed_ms,
                return_code=result.returncode,
                metadata={"command": command, "stdout": output},
            )

        except subprocess.TimeoutExpired:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Command timed out after {timeout}s",
                metadata={"command": command, "timeout": timeout},
            )
        except Exception as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Command execution error: {e}",
                metadata={"command": command},
            )
