"""Passive traffic capture tools (Zeek, Suricata, ntopng)."""

import os
from typing import Callable, Dict, List

from netorchestrator.errors import OrchestratorError
from netorchestrator.models import OrchestratorConfig
from netorchestrator.services.renderer import yaml_quote


class PassiveStackService:
    """Renders and starts the host-networked capture containers.

    Every pull and start is best-effort: a failing tool is reported and the
    remaining tools still run.
    """

    TOOLS = (
        ("zeek", "zeek/zeek:lts", "zeek-compose.yml"),
        ("suricata", "jasonish/suricata:latest", "suricata-compose.yml"),
        ("ntopng", "ntop/ntopng:latest", "ntopng-compose.yml"),
    )

    def __init__(self, logger, console, renderer):
        self.logger = logger
        self.console = console
        self.renderer = renderer

    def build_composes(self, config: OrchestratorConfig) -> Dict[str, str]:
        interface = config.monitor_interface
        return {
            "zeek-compose.yml": f"""
services:
  zeek:
    image: zeek/zeek:lts
    container_name: zeek
    network_mode: host
    cap_add:
      - NET_ADMIN
      - NET_RAW
    environment:
      ZEEK_LOG_DIR: /zeek/logs
    command: {yaml_quote(f"zeek -i {interface}")}
    volumes:
      - ./logs:/zeek/logs
      - ./scripts:/zeek/scripts
    restart: unless-stopped
""".lstrip(),
            "suricata-compose.yml": f"""
services:
  suricata:
    image: jasonish/suricata:latest
    container_name: suricata
    network_mode: host
    cap_add:
      - NET_ADMIN
      - NET_RAW
      - SYS_NICE
    command: {yaml_quote(f"-i {interface}")}
    volumes:
      - ./logs:/var/log/suricata
    restart: unless-stopped
""".lstrip(),
            "ntopng-compose.yml": f"""
services:
  ntopng:
    image: ntop/ntopng:latest
    container_name: ntopng
    network_mode: host
    command: {yaml_quote(f"-i {interface}")}
    restart: unless-stopped
""".lstrip(),
        }

    def render(self, config: OrchestratorConfig) -> List[str]:
        directory = config.phase_dir("passive")
        return [
            self.renderer.write(os.path.join(directory, file_name), content)
            for file_name, content in self.build_composes(config).items()
        ]

    def start(self, config: OrchestratorConfig, compose_cmd, run_cmd: Callable, docker_runtime) -> List[str]:
        """Returns the names of tools that failed to pull or start."""
        directory = config.phase_dir("passive")
        failed: List[str] = []

        self.console.print("[blue][*] Pulling passive traffic images...[/blue]")
        for name, image, _ in self.TOOLS:
            try:
                docker_runtime.pull_image(image, run_cmd)
            except OrchestratorError as exc:
                self.logger.warning("%s image pull failed: %s", name.capitalize(), exc)
                failed.append(name)

        self.console.print("[blue][*] Starting passive traffic containers...[/blue]")
        for name, _, compose_file in self.TOOLS:
            if name in failed:
                continue
            try:
                docker_runtime.up(compose_cmd, os.path.join(directory, compose_file), run_cmd)
            except OrchestratorError as exc:
                self.logger.warning("%s start failed: %s", name.capitalize(), exc)
                failed.append(name)

        running = [name for name, _, _ in self.TOOLS if name not in failed]
        if running:
            self.console.print(
                f"[green][*] Passive traffic tools running on {config.monitor_interface}: "
                f"{', '.join(running)}[/green]"
            )
        return failed
