import dataclasses
import logging
import os
import subprocess
import uuid
from typing import Any, Dict, List, Optional

from dotenv import dotenv_values
from rich.console import Console

from . import __version__
from .constants import MANIFEST_FILE_NAME, NETBOX_TAGS
from .errors import OrchestratorError
from .models import GeneratedSecrets, OrchestratorConfig, Phase, PhaseOutcome
from .services.command_runner import CommandRunner
from .services.docker_runtime import DockerRuntimeService
from .services.filesystem import FileSystemService
from .services.librenms_stack import LibreNMSStackService
from .services.manifest import ManifestService
from .services.netbox_stack import NetBoxStackService
from .services.oxidized_stack import OxidizedStackService
from .services.passive_stack import PassiveStackService
from .services.phase_runner import PhaseRunner
from .services.placeholder_scripts import PlaceholderScriptService
from .services.privilege import PrivilegeService
from .services.readiness import ReadinessPoller
from .services.renderer import ConfigRenderer
from .services.runtime_installer import RuntimeInstallerService

console = Console()
logger = logging.getLogger("netorchestrator")


class Orchestrator:
    def __init__(
        self,
        config: OrchestratorConfig,
        skip_runtime_install: bool = False,
        secrets: Optional[GeneratedSecrets] = None,
        stop_event=None,
    ):
        self.config = config
        self.dry_run = config.dry_run
        self.skip_runtime_install = skip_runtime_install
        self.run_id = uuid.uuid4().hex[:10]
        self.compose_cmd: Optional[List[str]] = None
        self._manifest_started = False

        self.command_runner = CommandRunner(logger=logger)
        self.filesystem_service = FileSystemService(logger=logger, console=console)
        self.renderer = ConfigRenderer(logger=logger, filesystem_service=self.filesystem_service)
        self.privilege_service = PrivilegeService(logger=logger)
        self.installer_service = RuntimeInstallerService(
            logger=logger,
            console=console,
            run_cmd=self._run_cmd,
        )
        self.docker_runtime_service = DockerRuntimeService(
            logger=logger,
            console=console,
            subprocess_module=subprocess,
        )
        self.poller = ReadinessPoller(logger=logger, console=console, stop_event=stop_event)
        self.manifest_service = ManifestService(
            manifest_file=os.path.join(config.base_dir, MANIFEST_FILE_NAME),
            logger=logger,
        )
        self.phase_runner = PhaseRunner(
            logger=logger,
            console=console,
            filesystem_service=self.filesystem_service,
            poller=self.poller,
            manifest_service=self.manifest_service,
            dry_run=self.dry_run,
        )

        self.netbox_stack = NetBoxStackService(logger=logger, console=console, renderer=self.renderer)
        self.librenms_stack = LibreNMSStackService(logger=logger, console=console, renderer=self.renderer)
        self.oxidized_stack = OxidizedStackService(
            logger=logger,
            console=console,
            renderer=self.renderer,
            filesystem_service=self.filesystem_service,
        )
        self.passive_stack = PassiveStackService(logger=logger, console=console, renderer=self.renderer)
        self.scripts_service = PlaceholderScriptService(logger=logger, console=console, renderer=self.renderer)

        self.secrets = secrets or self._collect_secrets()

    def _run_cmd(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = False,
        **kwargs,
    ) -> subprocess.CompletedProcess:
        return self.command_runner.run(cmd, check=check, capture_output=capture_output, **kwargs)

    @staticmethod
    def _read_previous_env(path: str) -> Dict[str, Optional[str]]:
        try:
            return dotenv_values(path)
        except OSError as exc:
            raise OrchestratorError(
                f"Could not read {path} from a previous run: {exc}. "
                "Re-run with the privileges that created it."
            ) from exc

    def _collect_secrets(self) -> GeneratedSecrets:
        """Generates this run's secrets, keeping values a previous run already wrote.

        Database volumes are initialised with the password of the first run,
        so replacing it on a re-run would lock the applications out.
        """
        secrets = GeneratedSecrets.generate()
        netbox_env = self._read_previous_env(os.path.join(self.config.phase_dir("netbox"), NetBoxStackService.ENV_FILE))
        librenms_env = self._read_previous_env(
            os.path.join(self.config.phase_dir("librenms"), LibreNMSStackService.DOTENV_FILE)
        )

        existing = {
            "netbox_db_password": netbox_env.get("DB_PASSWORD"),
            "netbox_secret_key": netbox_env.get("SECRET_KEY"),
            "librenms_db_password": librenms_env.get("MYSQL_PASSWORD"),
        }
        reused = {key: value for key, value in existing.items() if value}
        if reused:
            logger.info("Reusing secrets from a previous run: %s", ", ".join(sorted(reused)))
        return dataclasses.replace(secrets, **reused)

    def _build_manifest_metadata(self) -> Dict[str, Any]:
        return {
            "version": __version__,
            "base_dir": self.config.base_dir,
            "network_name": self.config.network_name,
            "monitor_interface": self.config.monitor_interface,
            "ports": {
                "netbox": self.config.netbox_port,
                "librenms": self.config.librenms_port,
                "oxidized": self.config.oxidized_port,
            },
            "dry_run": self.dry_run,
        }

    def prepare_host(self):
        if self.dry_run:
            console.print("[yellow]Dry run: host checks and container commands are skipped.[/yellow]")
            return

        self.privilege_service.require_root()

        if not self.skip_runtime_install:
            self.installer_service.ensure_docker()
            self.installer_service.ensure_docker_group(self.privilege_service.real_user())

        self.compose_cmd = self.docker_runtime_service.get_docker_compose_cmd(
            install_plugin=self.installer_service.install_compose_plugin,
        )
        self.docker_runtime_service.validate_environment(self.compose_cmd, self._run_cmd)

    def render_foundation(self):
        self.renderer.write(
            os.path.join(self.config.phase_dir("phase0"), "tags.env"),
            self.renderer.render_env({"NETBOX_TAGS": f'"{NETBOX_TAGS}"'}),
        )

    def start_foundation(self):
        self.docker_runtime_service.ensure_network(self.config.network_name, self._run_cmd)

    def start_netbox(self):
        self.netbox_stack.start(
            self.config,
            self.compose_cmd,
            self._run_cmd,
            self.docker_runtime_service,
            self.poller,
        )

    def start_passive(self):
        failed = self.passive_stack.start(
            self.config,
            self.compose_cmd,
            self._run_cmd,
            self.docker_runtime_service,
        )
        if failed:
            raise OrchestratorError(f"Passive traffic tools unavailable: {', '.join(failed)}")

    def render_completeness(self):
        self.scripts_service.render_summary(self.config)
        console.print("[bold][*] Phase 8: Validations / Completeness checks[/bold]")
        for line in self.scripts_service.summary_lines(self.config):
            console.print(f"[*] {line}", markup=False)

    def build_phases(self) -> List[Phase]:
        config = self.config
        run_cmd = self._run_cmd

        def start_with(stack):
            return lambda: stack.start(config, self.compose_cmd, run_cmd, self.docker_runtime_service)

        return [
            Phase(
                index=0,
                name="foundation",
                label="0",
                directory=config.phase_dir("phase0"),
                render=self.render_foundation,
                start=self.start_foundation,
            ),
            Phase(
                index=1,
                name="netbox",
                label="1",
                directory=config.phase_dir("netbox"),
                render=lambda: self.netbox_stack.render(config, self.secrets),
                start=self.start_netbox,
                checks=lambda: self.netbox_stack.web_checks(config),
            ),
            Phase(
                index=2,
                name="librenms",
                label="2 & 3 (LibreNMS)",
                directory=config.phase_dir("librenms"),
                render=lambda: self.librenms_stack.render(config, self.secrets),
                start=start_with(self.librenms_stack),
                checks=lambda: self.librenms_stack.readiness_checks(config, run_cmd),
            ),
            Phase(
                index=4,
                name="oxidized",
                label="4",
                directory=config.phase_dir("oxidized"),
                render=lambda: self.oxidized_stack.render(config),
                start=start_with(self.oxidized_stack),
                checks=lambda: self.oxidized_stack.readiness_checks(config),
            ),
            Phase(
                index=5,
                name="passive",
                label="5",
                directory=config.phase_dir("passive"),
                render=lambda: self.passive_stack.render(config),
                start=self.start_passive,
                fatal=False,
            ),
            Phase(
                index=6,
                name="compute",
                label="6",
                directory=config.phase_dir("compute"),
                render=lambda: self.scripts_service.render_discovery(config),
            ),
            Phase(
                index=7,
                name="ingestion",
                label="7",
                directory=config.phase_dir("ingestion"),
                render=lambda: self.scripts_service.render_ingest(config),
            ),
            Phase(
                index=8,
                name="completeness",
                label="8",
                directory=config.phase_dir("completeness"),
                render=self.render_completeness,
            ),
        ]

    def print_summary(self, outcomes: List[PhaseOutcome]):
        warnings = [outcome for outcome in outcomes if outcome.status == "warning"]
        for outcome in warnings:
            console.print(f"[yellow]Phase '{outcome.name}' finished with warnings: {outcome.error or 'see log'}[/yellow]")

        console.print(f"[bold green][*] Orchestrator v{__version__} bootstrap complete![/bold green]")
        console.print(f"[*] Base directory: {self.config.base_dir}")
        console.print("[*] You can now run ingestion and compute discovery scripts as needed.")

    def run(self) -> int:
        exit_code = 1
        manifest_status = "failed"
        manifest_error: Optional[str] = None

        try:
            console.rule(f"Network Mapping Orchestrator - Version {__version__}")
            logger.info("Starting netorchestrator run %s", self.run_id)

            self.prepare_host()
            self.filesystem_service.ensure_dir(self.config.base_dir)
            self.manifest_service.start_run(self.run_id, self._build_manifest_metadata())
            self._manifest_started = True

            outcomes = self.phase_runner.run(self.build_phases())
            self.print_summary(outcomes)

            manifest_status = "success"
            exit_code = 0
            return exit_code

        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            manifest_status = "aborted"
            manifest_error = "Operation cancelled by user."
            return exit_code
        except OrchestratorError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.error(str(exc))
            manifest_error = str(exc)
            return exit_code
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            manifest_error = str(exc)
            return exit_code
        finally:
            if self._manifest_started:
                self.manifest_service.finalize(manifest_status, error=manifest_error)
            if exit_code != 0:
                logger.warning(
                    "Provisioning stopped. Already created files and containers were left in place; "
                    "remove them manually or re-run after fixing the cause."
                )
