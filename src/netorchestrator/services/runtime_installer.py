"""Docker Engine installation for Debian/Ubuntu hosts."""

import os
import shutil
from typing import Callable, Optional

import requests

from netorchestrator.errors import OrchestratorError
from netorchestrator.errors_catalog import actionable_error


class RuntimeInstallerService:
    """Installs Docker Engine from the vendor apt repository when it is missing."""

    DOCKER_GPG_URL = "https://download.docker.com/linux/ubuntu/gpg"
    DOCKER_REPO_URL = "https://download.docker.com/linux/ubuntu"
    KEYRING_DIR = "/etc/apt/keyrings"
    KEYRING_PATH = "/etc/apt/keyrings/docker.gpg"
    SOURCES_LIST_PATH = "/etc/apt/sources.list.d/docker.list"
    PREREQUISITE_PACKAGES = ["ca-certificates", "curl", "gnupg", "lsb-release", "openssl", "git"]
    DOCKER_PACKAGES = [
        "docker-ce",
        "docker-ce-cli",
        "containerd.io",
        "docker-compose-plugin",
    ]

    def __init__(
        self,
        logger,
        console,
        run_cmd: Callable,
        which: Callable[[str], Optional[str]] = shutil.which,
        requests_module=requests,
    ):
        self.logger = logger
        self.console = console
        self.run_cmd = run_cmd
        self.which = which
        self.requests = requests_module

    def is_docker_installed(self) -> bool:
        return self.which("docker") is not None

    def ensure_docker(self) -> bool:
        """Returns True when an installation was performed."""
        if self.is_docker_installed():
            self.logger.info("Docker already installed.")
            return False

        if self.which("apt-get") is None:
            raise OrchestratorError(actionable_error("unsupported_package_manager"))

        self.console.print("[blue]Installing Docker Engine...[/blue]")
        self.logger.info("Installing Docker Engine...")

        self.run_cmd(["apt-get", "update"])
        self.run_cmd(["apt-get", "install", "-y"] + self.PREREQUISITE_PACKAGES)

        self._install_signing_key()
        self._write_sources_list()

        self.run_cmd(["apt-get", "update"])
        self.run_cmd(["apt-get", "install", "-y"] + self.DOCKER_PACKAGES)
        self.run_cmd(["systemctl", "enable", "docker"])
        self.run_cmd(["systemctl", "start", "docker"])

        if not self.is_docker_installed():
            raise OrchestratorError(actionable_error("docker_unavailable"))

        self.console.print("[green]Docker installed.[/green]")
        return True

    def install_compose_plugin(self) -> bool:
        if self.which("apt-get") is None:
            return False

        result = self.run_cmd(
            ["apt-get", "install", "-y", "docker-compose-plugin"],
            check=False,
            capture_output=True,
        )
        return result.returncode == 0

    def ensure_docker_group(self, user: str):
        if not user or user == "root":
            return

        group_result = self.run_cmd(["getent", "group", "docker"], check=False, capture_output=True)
        if group_result.returncode != 0:
            self.run_cmd(["groupadd", "docker"])

        id_result = self.run_cmd(["id", "-nG", user], check=False, capture_output=True)
        if "docker" in (id_result.stdout or "").split():
            return

        self.logger.info("Adding user '%s' to docker group", user)
        self.run_cmd(["usermod", "-aG", "docker", user])
        self.logger.warning("You may need to log out/in for group changes to apply.")

    def _install_signing_key(self):
        try:
            os.makedirs(self.KEYRING_DIR, exist_ok=True)
        except OSError as exc:
            raise OrchestratorError(f"Could not create {self.KEYRING_DIR}: {exc}") from exc

        try:
            response = self.requests.get(self.DOCKER_GPG_URL, timeout=30)
            response.raise_for_status()
        except self.requests.RequestException as exc:
            raise OrchestratorError(f"Could not download the Docker signing key: {exc}") from exc

        self.run_cmd(
            ["gpg", "--batch", "--yes", "--dearmor", "-o", self.KEYRING_PATH],
            input_data=response.text,
        )
        try:
            os.chmod(self.KEYRING_PATH, 0o644)
        except OSError as exc:
            raise OrchestratorError(f"Could not set permissions on {self.KEYRING_PATH}: {exc}") from exc

    def _write_sources_list(self):
        arch = self.run_cmd(["dpkg", "--print-architecture"], capture_output=True).stdout.strip()
        codename = self.run_cmd(["lsb_release", "-cs"], capture_output=True).stdout.strip()
        line = (
            f"deb [arch={arch} signed-by={self.KEYRING_PATH}] "
            f"{self.DOCKER_REPO_URL} {codename} stable\n"
        )
        try:
            with open(self.SOURCES_LIST_PATH, "w", encoding="utf-8", newline="\n") as file_obj:
                file_obj.write(line)
        except OSError as exc:
            raise OrchestratorError(f"Could not write {self.SOURCES_LIST_PATH}: {exc}") from exc
