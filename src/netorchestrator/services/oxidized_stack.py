"""Oxidized configuration-backup stack rendering and startup."""

import os
from typing import List

from netorchestrator.constants import CONTAINER_GID, CONTAINER_UID, DIR_MODE
from netorchestrator.models import OrchestratorConfig, ReadinessCheck
from netorchestrator.services.readiness import http_probe
from netorchestrator.services.renderer import yaml_quote

ROUTER_DB_SEED = """# hostname:model
# example:
# 10.0.0.1:ios
10.0.0.1:ios
10.0.0.2:ios
10.0.0.3:junos
"""

OXIDIZED_CONFIG = r"""---
username: oxidized
password: password
model: ios
interval: 3600
use_syslog: false
debug: false
threads: 30
timeout: 20
retries: 3
prompt: !ruby/regexp /^([\w.@-]+[#>]\s?)$/
rest: 0.0.0.0:8888

vars:
  enable: enable

input:
  default: ssh
  ssh:
    secure: false

output:
  default: git
  git:
    repo: "/home/oxidized/.config/oxidized/repo"

source:
  default: csv
  csv:
    file: "/home/oxidized/.config/oxidized/router.db"
    delimiter: !ruby/regexp /:/
    map:
      name: 0
      model: 1
      group: 2
    vars_map:
      ssh_port: 3
      telnet_port: 4
"""


class OxidizedStackService:
    """Builds the Oxidized container and its device source."""

    CONTAINER = "oxidized"
    COMPOSE_FILE = "docker-compose.yml"

    def __init__(self, logger, console, renderer, filesystem_service):
        self.logger = logger
        self.console = console
        self.renderer = renderer
        self.filesystem_service = filesystem_service

    @staticmethod
    def config_dir(config: OrchestratorConfig) -> str:
        return os.path.join(config.phase_dir("oxidized"), "config")

    @staticmethod
    def log_dir(config: OrchestratorConfig) -> str:
        return os.path.join(config.phase_dir("oxidized"), "logs")

    def build_compose(self, config: OrchestratorConfig) -> str:
        network = yaml_quote(config.network_name)
        config_mount = yaml_quote(f"{self.config_dir(config)}:/home/oxidized/.config/oxidized")
        log_mount = yaml_quote(f"{self.log_dir(config)}:/home/oxidized/.config/oxidized/logs")
        return f"""
services:
  {self.CONTAINER}:
    image: oxidized/oxidized:latest
    container_name: {self.CONTAINER}
    restart: unless-stopped
    ports:
      - "{config.oxidized_port}:8888"
    environment:
      CONFIG_RELOAD: "600"
    volumes:
      - {config_mount}
      - {log_mount}
    networks:
      - {network}

networks:
  {network}:
    external: true
""".lstrip()

    def compose_path(self, config: OrchestratorConfig) -> str:
        return os.path.join(config.phase_dir("oxidized"), self.COMPOSE_FILE)

    def render(self, config: OrchestratorConfig) -> List[str]:
        config_dir = self.filesystem_service.ensure_dir(self.config_dir(config))
        self.filesystem_service.ensure_dir(self.log_dir(config))

        router_db = os.path.join(config_dir, "router.db")
        self.renderer.write_if_absent(router_db, ROUTER_DB_SEED)
        written = [
            router_db,
            self.renderer.write(os.path.join(config_dir, "config"), OXIDIZED_CONFIG),
            self.renderer.write(self.compose_path(config), self.build_compose(config)),
        ]

        root = config.phase_dir("oxidized")
        self.filesystem_service.chown_tree(root, CONTAINER_UID, CONTAINER_GID)
        self.filesystem_service.set_tree_permissions(
            root,
            dir_mode=DIR_MODE,
            file_mode=DIR_MODE,
            script_mode=DIR_MODE,
        )
        return written

    def readiness_checks(self, config: OrchestratorConfig) -> List[ReadinessCheck]:
        url = self.url(config)
        return [
            ReadinessCheck(
                name=f"Oxidized web UI on {url}",
                probe=http_probe(url),
                max_attempts=config.web_readiness_attempts,
                delay_seconds=config.readiness_delay_seconds,
                fatal=False,
                target=self.CONTAINER,
            )
        ]

    def start(self, config: OrchestratorConfig, compose_cmd, run_cmd, docker_runtime):
        compose_file = self.compose_path(config)
        docker_runtime.pull(compose_cmd, compose_file, run_cmd)
        docker_runtime.up(compose_cmd, compose_file, run_cmd)

    @staticmethod
    def url(config: OrchestratorConfig) -> str:
        return f"http://localhost:{config.oxidized_port}"
