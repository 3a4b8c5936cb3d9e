"""
Git adapter — global git configuration.

Reads, sets, and unsets keys in the user's global git config
(``git config --global``). Uses the git CLI — never edits
~/.gitconfig directly.
"""

from __future__ import annotations

import logging
import shlex
import shutil
import subprocess
import time

from devstrap.adapters.base import Adapter, ExecutionContext
from devstrap.core.models.action import Receipt

logger = logging.getLogger(__name__)

# `git config --get` exits 1 when the key is not set
_EXIT_KEY_UNSET = 1


def config_set_command(key: str, value: str) -> str:
    """Shell command that sets a global git config key."""
    return shlex.join(["git", "config", "--global", key, value])


def config_unset_command(key: str) -> str:
    """Shell command that removes a global git config key."""
    return shlex.join(["git", "config", "--global", "--unset", key])


class GitConfigAdapter(Adapter):
    """Global git config operations.

    Action params:
        operation (str): One of 'get', 'set', 'unset'.
        key (str): Config key, e.g. 'user.email' or 'alias.st'.
        value (str): New value (for 'set').
        timeout (int): Timeout in seconds (default: 30).
    """

    OPERATIONS = {"get", "set", "unset"}

    @property
    def name(self) -> str:
        return "git"

    def is_available(self) -> bool:
        return shutil.which("git") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.action.params.get("operation", "")
        if operation not in self.OPERATIONS:
            return False, (
                f"Unknown operation '{operation}'. "
                f"Valid: {', '.join(sorted(self.OPERATIONS))}"
            )
        if not context.action.params.get("key"):
            return False, "Missing required param: 'key'"
        if operation == "set" and "value" not in context.action.params:
            return False, "Missing required param: 'value' for set operation"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = context.action.params["operation"]
        key = context.action.params["key"]
        if operation == "get":
            return self._get(context, key)
        if operation == "set":
            return self._run(context, ["config", "--global", key, context.action.params["value"]])
        return self._run(context, ["config", "--global", "--unset", key])

    # ── Operations ──────────────────────────────────────────────

    def _get(self, ctx: ExecutionContext, key: str) -> Receipt:
        """Current value. An unset key is a success with empty output."""
        receipt = self._run(ctx, ["config", "--global", "--get", key])
        if receipt.failed and receipt.return_code == _EXIT_KEY_UNSET:
            return Receipt.success(
                adapter=self.name,
                action_id=ctx.action.id,
                output="",
                duration_ms=receipt.duration_ms,
                return_code=receipt.return_code,
                metadata={"key": key, "set": False},
            )
        if receipt.ok:
            receipt.metadata["set"] = True
        return receipt

    # ── Helpers ─────────────────────────────────────────────────

    def _run(self, ctx: ExecutionContext, args: list[str]) -> Receipt:
        """Run a git command and wrap the outcome in a receipt."""
        timeout = ctx.action.params.get("timeout", 30)
        key = ctx.action.params.get("key", "")
        start = time.monotonic()
        try:
            result = subprocess.run(
                ["git", *args],
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=f"git {args[0]} timed out after {timeout}s",
                metadata={"key": key},
            )
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=f"Git error: {e}",
                metadata={"key": key},
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        if result.returncode == 0:
            return Receipt.success(
                adapter=self.name,
                action_id=ctx.action.id,
                output=result.stdout.rstrip("\n"),
                duration_ms=elapsed_ms,
                return_code=0,
                metadata={"key": key},
            )
        return Receipt.failure(
            adapter=self.name,
            action_id=ctx.action.id,
            error=result.stderr.strip() or f"git {args[0]} failed",
            duration_ms=elapsed_ms,
            return_code=result.returncode,
            metadata={"key": key},
        )
