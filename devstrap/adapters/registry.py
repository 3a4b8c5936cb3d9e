"""
Adapter registry — central dispatch for all adapter operations.

The registry is the single point of adapter management. It handles
registration, lookup, mock mode, and action execution. Use cases and
the undo engine never talk to adapters directly — always through the
registry.
"""

from __future__ import annotations

import logging
import time

from devstrap.adapters.base import Adapter, ExecutionContext
from devstrap.adapters.mock import MockAdapter
from devstrap.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Central registry and dispatcher for adapters.

    Features:
        - Register/unregister adapters by name
        - Mock mode: route every action to a mock instead of the host
        - Execute actions through the appropriate adapter
        - Query adapter availability
    """

    def __init__(self, mock_mode: bool = False):
        self._adapters: dict[str, Adapter] = {}
        self._mock_mode = mock_mode
        self._mock_adapter: Adapter | None = MockAdapter() if mock_mode else None

    @property
    def mock_mode(self) -> bool:
        return self._mock_mode

    def set_mock_mode(self, enabled: bool, mock_adapter: Adapter | None = None) -> None:
        """Enable or disable mock mode.

        Args:
            enabled: Whether to use mock mode.
            mock_adapter: Optional custom mock adapter. If None, a
                MockAdapter with default responses is used.
        """
        self._mock_mode = enabled
        if enabled and mock_adapter is None:
            mock_adapter = MockAdapter()
        self._mock_adapter = mock_adapter

    def register(self, adapter: Adapter) -> None:
        """Register an adapter.

        Args:
            adapter: The adapter instance to register.
        """
        name = adapter.name
        if name in self._adapters:
            logger.warning("Overwriting existing adapter: %s", name)
        self._adapters[name] = adapter
        logger.debug("Registered adapter: %s", name)

    def unregister(self, name: str) -> None:
        """Remove an adapter from the registry."""
        self._adapters.pop(name, None)

    def get(self, name: str) -> Adapter | None:
        """Look up an adapter by name."""
        return self._adapters.get(name)

    def list_adapters(self) -> list[str]:
        """List all registered adapter names."""
        return list(self._adapters.keys())

    def is_available(self, name: str) -> bool:
        """Whether the named adapter's tool is usable. Always True in mock mode."""
        if self._mock_mode:
            return True
        adapter = self._adapters.get(name)
        if adapter is None:
            return False
        try:
            return adapter.is_available()
        except Exception as e:
            logger.debug("Availability check for %s raised: %s", name, e)
            return False

    def execute_action(
        self,
        action: Action,
        work_dir: str = ".",
        timeout: int = 600,
    ) -> Receipt:
        """Execute an action through the appropriate adapter.

        This is the main dispatch method. It:
        1. Resolves the adapter (or mock)
        2. Builds the execution context
        3. Validates the action
        4. Executes
        5. Returns a Receipt (never raises)

        Args:
            action: The action to execute.
            work_dir: Working directory for commands.
            timeout: Timeout in seconds for external processes.

        Returns:
            Receipt with execution results.
        """
        start_time = time.monotonic()

        context = ExecutionContext(
            action=action,
            work_dir=work_dir,
            timeout=timeout,
            params=action.params,
        )

        # Resolve adapter
        adapter: Adapter | None
        if self._mock_mode:
            adapter = self._mock_adapter
        else:
            adapter = self._adapters.get(action.adapter)

        if adapter is None:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"No adapter registered for '{action.adapter}'",
            )

        # Validate
        try:
            is_valid, error_msg = adapter.validate(context)
            if not is_valid:
                return Receipt.failure(
                    adapter=action.adapter,
                    action_id=action.id,
                    error=f"Validation failed: {error_msg}",
                )
        except Exception as e:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Validation error: {e}",
            )

        # Execute
        try:
            receipt = adapter.execute(context)
        except Exception as e:
            # Adapters should never raise
            logger.error("Adapter %s raised during execution: %s", action.adapter, e)
            receipt = Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Unexpected error: {e}",
            )

        # Add timing
        elapsed_ms = int((time.monotonic() - start_time) * 1000)
        receipt.duration_ms = elapsed_ms

        return receipt


def build_registry(mock: bool = False) -> AdapterRegistry:
    """Registry wired with the host adapters.

    In mock mode every action goes to a MockAdapter with empty output,
    which reads as "nothing installed, nothing configured".
    """
    from devstrap.adapters.packages.apt import AptAdapter
    from devstrap.adapters.shell.command import ShellCommandAdapter
    from devstrap.adapters.vcs.git import GitConfigAdapter

    registry = AdapterRegistry()
    registry.register(ShellCommandAdapter())
    registry.register(AptAdapter())
    registry.register(GitConfigAdapter())

    if mock:
        registry.set_mock_mode(True, MockAdapter(default_output=""))

    return registry
