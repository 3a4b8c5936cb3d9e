"""
Action recorder — writes the inverse of each successful mutation.

The recorder owns no state of its own beyond a counter: it is handed
the run's undo log at construction and appends one restoring command
per call. It never deduplicates and never validates what it is given.
"""

from __future__ import annotations

import logging
import shlex

from devstrap.adapters.vcs.git import config_set_command, config_unset_command
from devstrap.core.data.package_managers import needs_sudo_prefix, remove_command
from devstrap.core.persistence.undo_log import UndoLog

logger = logging.getLogger(__name__)


class ActionRecorder:
    """Append restoring commands to an undo log.

    Only call this after a mutation succeeded. Skipped, declined, or
    failed mutations must not be recorded.
    """

    def __init__(self, undo_log: UndoLog, package_manager: str = "apt"):
        self._undo_log = undo_log
        self._package_manager = package_manager
        self._recorded = 0

    @property
    def undo_log(self) -> UndoLog:
        return self._undo_log

    @property
    def recorded(self) -> int:
        """Number of entries written by this recorder."""
        return self._recorded

    def record(self, command: str) -> bool:
        """Append ``command`` to the undo log.

        A write failure, or a command that would not fit on one log
        line, is logged and reported as False. The undo guarantee for
        that one action is lost; the run continues.
        """
        try:
            self._undo_log.append(command)
        except (OSError, ValueError) as e:
            logger.error(
                "Failed to record undo command to %s: %s (command: %s)",
                self._undo_log.path, e, command,
            )
            return False
        self._recorded += 1
        logger.debug("Recorded undo command: %s", command)
        return True

    def record_package_install(self, package: str) -> bool:
        """A new package was installed: record its removal."""
        return self.record(remove_command(self._package_manager, package))

    def record_config_change(self, key: str, previous: str) -> bool:
        """A git config key changed: restore ``previous``, or unset if it had none."""
        if previous:
            return self.record(config_set_command(key, previous))
        return self.record(config_unset_command(key))

    def record_file_created(self, path: str, privileged: bool = True) -> bool:
        """A file was created outside the package manager: record its removal."""
        argv = ["rm", "-f", path]
        if privileged and needs_sudo_prefix():
            argv = ["sudo", *argv]
        return self.record(shlex.join(argv))
