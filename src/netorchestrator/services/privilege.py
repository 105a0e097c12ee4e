"""Privilege precondition checks for netorchestrator."""

import getpass
import os
import sys

from netorchestrator.errors import PrivilegeError
from netorchestrator.errors_catalog import actionable_error


class PrivilegeService:
    """Checks the effective privilege level once at process entry."""

    def __init__(self, logger, os_module=os, environ=None):
        self.logger = logger
        self.os = os_module
        self.environ = os.environ if environ is None else environ

    def is_root(self) -> bool:
        geteuid = getattr(self.os, "geteuid", None)
        if geteuid is None:
            return False
        return geteuid() == 0

    def require_root(self, command: str = ""):
        if self.is_root():
            return

        command = command or " ".join(sys.argv) or "netorchestrator deploy"
        raise PrivilegeError(actionable_error("privilege_required", command=command))

    def real_user(self) -> str:
        for key in ("SUDO_USER", "LOGNAME"):
            value = self.environ.get(key)
            if value:
                return value
        return getpass.getuser()
