"""Configuration and manifest rendering for netorchestrator."""

import json
import os
from typing import Mapping

from netorchestrator.constants import FILE_MODE
from netorchestrator.errors import OrchestratorError


def yaml_quote(value) -> str:
    """Renders ``value`` as a double-quoted YAML scalar."""
    return json.dumps(str(value))


class ConfigRenderer:
    """Writes rendered configuration text into the phase directories.

    Targets are overwritten in place without diffing or backups, and the
    rendered text is not validated; the container runtime is the first
    consumer to reject a malformed file.
    """

    def __init__(self, logger, filesystem_service):
        self.logger = logger
        self.filesystem_service = filesystem_service

    @staticmethod
    def render_env(values: Mapping[str, object]) -> str:
        lines = [f"{key}={value}" for key, value in values.items()]
        return "\n".join(lines) + "\n"

    def write(self, path: str, content: str, mode: int = FILE_MODE) -> str:
        directory = os.path.dirname(path)
        try:
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(path, "w", encoding="utf-8", newline="\n") as file_obj:
                file_obj.write(content)
        except OSError as exc:
            raise OrchestratorError(f"Could not write {path}: {exc}") from exc

        self.filesystem_service.set_permissions(path, mode)
        self.logger.debug("Rendered %s", path)
        return path

    def write_if_absent(self, path: str, content: str, mode: int = FILE_MODE) -> bool:
        if os.path.exists(path):
            self.logger.info("Keeping existing %s", path)
            return False

        self.write(path, content, mode)
        return True
