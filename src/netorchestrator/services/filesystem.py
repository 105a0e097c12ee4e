"""Filesystem helpers for netorchestrator."""

import logging
import os
import sys

from rich.console import Console

from netorchestrator.constants import DIR_MODE
from netorchestrator.errors import OrchestratorError


class FileSystemService:
    """Encapsulates directory creation and ownership side effects."""

    def __init__(self, logger: logging.Logger, console: Console):
        self.logger = logger
        self.console = console

    def ensure_dir(self, path: str, mode: int = DIR_MODE) -> str:
        try:
            os.makedirs(path, exist_ok=True)
        except OSError as exc:
            raise OrchestratorError(f"Could not create directory {path}: {exc}") from exc
        self.set_permissions(path, mode)
        return path

    def set_permissions(self, path: str, mode: int):
        if sys.platform == "win32":
            return

        try:
            os.chmod(path, mode)
        except OSError as exc:
            self.logger.warning("Could not set permissions on %s: %s", path, exc)

    def set_tree_permissions(self, root: str, dir_mode: int, file_mode: int, script_mode: int):
        if sys.platform == "win32" or not os.path.exists(root):
            return

        self.set_permissions(root, dir_mode)
        for current_root, dirs, files in os.walk(root):
            for directory in dirs:
                self.set_permissions(os.path.join(current_root, directory), dir_mode)
            for file_name in files:
                mode = script_mode if file_name.endswith(".sh") else file_mode
                self.set_permissions(os.path.join(current_root, file_name), mode)

    def chown_tree(self, root: str, uid: int, gid: int):
        """Hands a bind-mounted tree to the user a container runs as."""
        if sys.platform == "win32" or not os.path.exists(root):
            return

        paths = [root]
        for current_root, dirs, files in os.walk(root):
            paths.extend(os.path.join(current_root, name) for name in dirs + files)

        for path in paths:
            try:
                os.chown(path, uid, gid)
            except OSError as exc:
                self.logger.warning("Could not change owner of %s: %s", path, exc)
                return
