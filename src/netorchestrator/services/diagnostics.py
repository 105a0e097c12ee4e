"""Read-only health report for a deployed stack."""

import os
import platform
from typing import Callable, List

from rich.table import Table

from netorchestrator.errors import OrchestratorError
from netorchestrator.models import DiagnosticResult, OrchestratorConfig
from netorchestrator.services.librenms_stack import LibreNMSStackService
from netorchestrator.services.netbox_stack import NetBoxStackService
from netorchestrator.services.oxidized_stack import OxidizedStackService
from netorchestrator.services.passive_stack import PassiveStackService
from netorchestrator.services.placeholder_scripts import PlaceholderScriptService
from netorchestrator.services.readiness import container_command_probe, http_probe


class DiagnosticsService:
    """Probes every service of the stack once, without changing anything."""

    def __init__(self, logger, console, run_cmd: Callable, docker_runtime, http_probe_factory=http_probe):
        self.logger = logger
        self.console = console
        self.run_cmd = run_cmd
        self.docker_runtime = docker_runtime
        self.http_probe_factory = http_probe_factory

    def _probe(self, name: str, probe: Callable[[], bool], ok_detail: str, fail_detail: str) -> DiagnosticResult:
        try:
            ok = bool(probe())
        except (OrchestratorError, OSError) as exc:
            return DiagnosticResult(name=name, ok=False, detail=str(exc))
        return DiagnosticResult(name=name, ok=ok, detail=ok_detail if ok else fail_detail)

    def _show(self, title: str, cmd: List[str]):
        try:
            result = self.run_cmd(cmd, check=False, capture_output=True)
        except OrchestratorError as exc:
            self.console.print(f"[red]{title}: {exc}[/red]")
            return
        self.console.print(f"[bold][*] {title}[/bold]")
        self.console.print((result.stdout or result.stderr or "").rstrip(), markup=False)

    def collect(self, config: OrchestratorConfig) -> List[DiagnosticResult]:
        uname = platform.uname()
        results = [
            DiagnosticResult(name="Host", ok=True, detail=f"{uname.system} {uname.node} {uname.release} {uname.machine}"),
            self._probe(
                "Docker daemon",
                lambda: self.docker_runtime.is_daemon_active(self.run_cmd),
                "running",
                "NOT running",
            ),
        ]

        container_probes = [
            ("NetBox PostgreSQL", NetBoxStackService.DB_CONTAINER, ["pg_isready", "-U", NetBoxStackService.DB_USER]),
            ("NetBox Redis", NetBoxStackService.REDIS_CONTAINER, ["redis-cli", "ping"]),
            (
                "LibreNMS MariaDB",
                LibreNMSStackService.DB_CONTAINER,
                ["sh", "-c", "mariadb-admin ping --silent || mysqladmin ping --silent"],
            ),
            ("LibreNMS Redis", LibreNMSStackService.REDIS_CONTAINER, ["redis-cli", "ping"]),
        ]
        for name, container, command in container_probes:
            results.append(
                self._probe(
                    name,
                    container_command_probe(self.run_cmd, container, command),
                    "reachable",
                    f"not reachable in {container}",
                )
            )

        for name, url in (
            ("NetBox web UI", NetBoxStackService.url(config)),
            ("LibreNMS web UI", LibreNMSStackService.url(config)),
            ("Oxidized web UI", OxidizedStackService.url(config)),
        ):
            results.append(self._probe(name, self.http_probe_factory(url), url, f"{url} not answering"))

        for tool, _, _ in PassiveStackService.TOOLS:
            results.append(
                self._probe(
                    f"{tool} container",
                    lambda tool=tool: self.docker_runtime.container_exists(tool, self.run_cmd),
                    "present",
                    "no container",
                )
            )

        for name, path in (
            ("Compute discovery script", PlaceholderScriptService.discovery_path(config)),
            ("Ingestion script", PlaceholderScriptService.ingest_path(config)),
        ):
            exists = os.path.isfile(path)
            results.append(DiagnosticResult(name=name, ok=exists, detail=path if exists else f"missing: {path}"))

        return results

    def run(self, config: OrchestratorConfig) -> List[DiagnosticResult]:
        self.console.rule("Full Stack Diagnostic")
        self._show("Containers", ["docker", "ps", "-a"])
        self._show("Docker networks", ["docker", "network", "ls"])

        results = self.collect(config)

        table = Table(title="Service health")
        table.add_column("Check")
        table.add_column("Status")
        table.add_column("Detail")
        for result in results:
            status = "[green]OK[/green]" if result.ok else "[red]FAIL[/red]"
            table.add_row(result.name, status, result.detail)
        self.console.print(table)
        self.console.rule("Diagnostic complete")
        return results
