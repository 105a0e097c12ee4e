"""Follow-on operator scripts and the completeness summary."""

import os
from typing import List

from netorchestrator.constants import SCRIPT_MODE
from netorchestrator.models import OrchestratorConfig

DISCOVERY_SCRIPT = """#!/usr/bin/env bash
set -euo pipefail
echo "[*] Placeholder: Hyper-V, ESXi, VMware Workstation/Player discovery"
echo "[*] Implement API/SSH-based hypervisor + VM inventory and push into NetBox."
"""

INGEST_SCRIPT = """#!/usr/bin/env bash
set -euo pipefail
echo "[*] Placeholder: SNMP, SSH, API ingestion"
echo "[*] Implement dry-run discovery, validate devices before writing to NetBox/LibreNMS."
"""


class PlaceholderScriptService:
    def __init__(self, logger, console, renderer):
        self.logger = logger
        self.console = console
        self.renderer = renderer

    @staticmethod
    def discovery_path(config: OrchestratorConfig) -> str:
        return os.path.join(config.phase_dir("compute"), "discovery.sh")

    @staticmethod
    def ingest_path(config: OrchestratorConfig) -> str:
        return os.path.join(config.phase_dir("ingestion"), "ingest.sh")

    def render_discovery(self, config: OrchestratorConfig) -> List[str]:
        return [self.renderer.write(self.discovery_path(config), DISCOVERY_SCRIPT, mode=SCRIPT_MODE)]

    def render_ingest(self, config: OrchestratorConfig) -> List[str]:
        return [self.renderer.write(self.ingest_path(config), INGEST_SCRIPT, mode=SCRIPT_MODE)]

    def summary_lines(self, config: OrchestratorConfig) -> List[str]:
        return [
            f"NetBox:     http://localhost:{config.netbox_port}",
            f"LibreNMS:   http://localhost:{config.librenms_port}",
            f"Oxidized:   http://localhost:{config.oxidized_port}",
            f"Passive:    Zeek / Suricata / Ntopng (host mode on {config.monitor_interface})",
            f"Compute:    {self.discovery_path(config)}",
            f"Ingestion:  {self.ingest_path(config)}",
        ]

    def render_summary(self, config: OrchestratorConfig) -> List[str]:
        content = "\n".join(self.summary_lines(config)) + "\n"
        path = os.path.join(config.phase_dir("completeness"), "summary.txt")
        return [self.renderer.write(path, content)]
