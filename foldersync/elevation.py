"""Administrator privilege detection and elevated restart."""

from __future__ import annotations

import logging
import os
import subprocess
import sys

from foldersync.models import ElevationError

logger = logging.getLogger(__name__)


class AdminPrivilegeHandler:
    """Checks for and requests administrator (root) privileges.

    On Windows the restart goes through the UAC ``runas`` verb; elsewhere
    the current interpreter is re-executed under ``sudo``.
    """

    def __init__(self, module: str = "foldersync") -> None:
        self._module = module

    def is_elevated(self) -> bool:
        if sys.platform == "win32":
            import ctypes

            try:
                return bool(ctypes.windll.shell32.IsUserAnAdmin())
            except OSError:
                return False
        return hasattr(os, "geteuid") and os.geteuid() == 0

    def restart_elevated(self, args: list[str]) -> None:
        """Relaunch ``python -m foldersync <args>`` with elevated privileges."""
        command = [sys.executable, "-m", self._module, *args]
        logger.info("Restarting with administrator privileges")

        if sys.platform == "win32":
            import ctypes

            params = subprocess.list2cmdline(command[1:])
            rc = ctypes.windll.shell32.ShellExecuteW(None, "runas", command[0], params, None, 1)
            # ShellExecuteW returns a value <= 32 on failure
            if rc <= 32:
                raise ElevationError(f"ShellExecuteW failed with code {rc}")
            return

        try:
            os.execvp("sudo", ["sudo", *command])
        except OSError as e:
            raise ElevationError(f"Could not re-run under sudo: {e}") from e
