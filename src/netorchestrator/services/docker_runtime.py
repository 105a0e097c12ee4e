"""Docker runtime services for netorchestrator."""

import os
import subprocess
from typing import Callable, List, Optional

from netorchestrator.errors import OrchestratorError
from netorchestrator.errors_catalog import actionable_error


class DockerRuntimeService:
    """Manages docker-compose detection and container lifecycle helpers."""

    def __init__(self, logger, console, subprocess_module=subprocess):
        self.logger = logger
        self.console = console
        self.subprocess = subprocess_module

    def _detect_compose_cmd(self) -> Optional[List[str]]:
        try:
            self.subprocess.run(["docker", "compose", "version"], check=True, capture_output=True)
            return ["docker", "compose"]
        except (self.subprocess.CalledProcessError, FileNotFoundError):
            try:
                self.subprocess.run(["docker-compose", "--version"], check=True, capture_output=True)
                return ["docker-compose"]
            except (self.subprocess.CalledProcessError, FileNotFoundError):
                return None

    def get_docker_compose_cmd(self, install_plugin: Optional[Callable[[], bool]] = None) -> List[str]:
        compose_cmd = self._detect_compose_cmd()
        if compose_cmd:
            return compose_cmd

        if install_plugin is not None:
            self.logger.info("Docker Compose not found, installing the compose plugin...")
            install_plugin()
            compose_cmd = self._detect_compose_cmd()
            if compose_cmd:
                return compose_cmd

        raise OrchestratorError(actionable_error("compose_unavailable"))

    def validate_environment(self, compose_cmd: List[str], run_cmd: Callable):
        self.console.print("[blue]Validating Docker environment...[/blue]")
        run_cmd(["docker", "--version"], capture_output=True)
        run_cmd(compose_cmd + ["version"], capture_output=True)
        self.console.print("[green]Docker is available.[/green]")

    def ensure_network(self, network_name: str, run_cmd: Callable) -> bool:
        """Creates the shared bridge network; returns False when it already existed."""
        inspect = run_cmd(["docker", "network", "inspect", network_name], check=False, capture_output=True)
        if inspect.returncode == 0:
            self.logger.info("Docker network %s already exists.", network_name)
            return False

        run_cmd(["docker", "network", "create", network_name], capture_output=True)
        self.logger.info("Created Docker network %s", network_name)
        return True

    def pull(self, compose_cmd: List[str], compose_file: str, run_cmd: Callable):
        run_cmd(
            compose_cmd + ["-f", compose_file, "pull"],
            capture_output=True,
            cwd=os.path.dirname(compose_file) or None,
        )

    def up(
        self,
        compose_cmd: List[str],
        compose_file: str,
        run_cmd: Callable,
        services: Optional[List[str]] = None,
    ):
        run_cmd(
            compose_cmd + ["-f", compose_file, "up", "-d"] + list(services or []),
            capture_output=True,
            cwd=os.path.dirname(compose_file) or None,
        )

    def pull_image(self, image: str, run_cmd: Callable):
        run_cmd(["docker", "pull", image], capture_output=True)

    def is_daemon_active(self, run_cmd: Callable) -> bool:
        result = run_cmd(["systemctl", "is-active", "--quiet", "docker"], check=False, capture_output=True)
        return result.returncode == 0

    def container_exists(self, container: str, run_cmd: Callable) -> bool:
        result = run_cmd(
            ["docker", "ps", "-a", "--filter", f"name=^{container}$", "--format", "{{.Names}}"],
            check=False,
            capture_output=True,
        )
        return result.returncode == 0 and container in (result.stdout or "").split()
