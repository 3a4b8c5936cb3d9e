"""
Adapter base — the protocol contract between devstrap and host tools.

This defines the abstract interface that every adapter must implement.
Use cases and the undo engine only talk to adapters through this
protocol, never directly to apt, git, or the shell.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from devstrap.core.models.action import Action, Receipt


class ExecutionContext(BaseModel):
    """Everything an adapter needs to execute an action.

    This is the adapter's view of the world: the action to perform,
    the working directory, the timeout, and any resolved parameters.
    """

    action: Action
    work_dir: str = "."
    timeout: int = 600
    params: dict[str, Any] = Field(default_factory=dict)

    @property
    def working_dir(self) -> str:
        """Resolved working directory: an explicit ``cwd`` param wins."""
        return self.action.params.get("cwd") or self.work_dir


class Adapter(ABC):
    """Abstract base class for all adapters.

    Adapters perform host side effects and return receipts.
    They NEVER raise exceptions — failures are captured in the Receipt.

    To create a new adapter:
        1. Subclass Adapter
        2. Implement name, is_available, validate, execute
        3. Register it in the AdapterRegistry
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier (e.g., 'shell', 'apt', 'git')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this adapter's underlying tool is available.

        Should be fast and never raise.
        """

    @abstractmethod
    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        """Validate that the action can be executed.

        Returns:
            (is_valid, error_message). error_message is empty if valid.
        """

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Receipt:
        """Execute the action and return a receipt.

        MUST never raise exceptions. All failures are captured
        in the Receipt with status='failed'.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
