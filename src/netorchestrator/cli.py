import logging
import os
import shutil
import signal
import threading

import click
from rich.logging import RichHandler

from . import constants
from .core import Orchestrator, OrchestratorError, console
from .models import OrchestratorConfig, SmtpSettings
from .services.command_runner import CommandRunner
from .services.config_loader import ConfigLoader
from .services.diagnostics import DiagnosticsService
from .services.docker_runtime import DockerRuntimeService

DEFAULT_CONFIG_NAME = ".netorchestrator.yml"


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


def _ask(value, message, default, interactive, value_type=str, hide_input=False):
    """Prompts for a value that neither the command line nor the config file set."""
    if value is not None:
        return value
    if not interactive:
        return default
    return click.prompt(
        message,
        default=default,
        type=value_type,
        hide_input=hide_input,
        show_default=not hide_input,
    )


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


def _configure_logging(verbose: bool, log_file):
    logger = logging.getLogger("netorchestrator")
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)


def _install_stop_handler(stop_event: threading.Event):
    """Turns SIGTERM into a cooperative stop between readiness attempts and phases."""

    def _request_stop(signum, _frame):
        logging.getLogger("netorchestrator").warning("Received signal %s, stopping at the next checkpoint.", signum)
        stop_event.set()

    return signal.signal(signal.SIGTERM, _request_stop)


def _load_config(config):
    resolved_config = config
    if resolved_config is None:
        default_config_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_NAME)
        if os.path.exists(default_config_path):
            resolved_config = default_config_path

    try:
        return ConfigLoader().load(resolved_config)
    except OrchestratorError as exc:
        raise click.ClickException(str(exc)) from exc


@click.group()
@click.version_option(package_name="netorchestrator")
def main():
    """Bootstrap NetBox, LibreNMS, Oxidized and passive traffic tools on one host."""


@main.command()
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_NAME} if present.",
)
@click.option("--base-dir", required=False, help="Base directory for the orchestrator tree.")
@click.option("--timezone", required=False, help="Timezone for the LibreNMS containers.")
@click.option("--smtp-host", required=False, help="SMTP relay host for LibreNMS mail.")
@click.option("--smtp-port", required=False, type=int, help="SMTP relay port.")
@click.option("--smtp-user", required=False, help="SMTP username.")
@click.option("--smtp-password", required=False, help="SMTP password.")
@click.option("--smtp-from", required=False, help="Sender address (defaults to the SMTP username).")
@click.option("--monitor-interface", required=False, help="Interface for passive traffic capture.")
@click.option("--network-name", required=False, help="Shared Docker network name.")
@click.option("--netbox-port", required=False, type=int, help="Published NetBox port.")
@click.option("--librenms-port", required=False, type=int, help="Published LibreNMS port.")
@click.option("--oxidized-port", required=False, type=int, help="Published Oxidized port.")
@click.option("--readiness-attempts", required=False, type=int, help="Attempts per database/cache readiness check.")
@click.option("--readiness-delay", required=False, type=float, help="Seconds between readiness attempts.")
@click.option("--non-interactive", is_flag=True, default=None, help="Never prompt; use defaults for unset values.")
@click.option(
    "--skip-runtime-install",
    is_flag=True,
    default=None,
    help="Do not install Docker Engine when it is missing.",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=None,
    help="Render every phase's files without touching Docker or requiring root.",
)
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
def deploy(
    config,
    base_dir,
    timezone,
    smtp_host,
    smtp_port,
    smtp_user,
    smtp_password,
    smtp_from,
    monitor_interface,
    network_name,
    netbox_port,
    librenms_port,
    oxidized_port,
    readiness_attempts,
    readiness_delay,
    non_interactive,
    skip_runtime_install,
    dry_run,
    verbose,
    log_file,
):
    """Provision phases 0 through 8."""
    config_values = _load_config(config)

    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")
    _configure_logging(verbose, log_file)

    interactive = not bool(_resolve_option(non_interactive, config_values, "non_interactive", default=False))
    skip_runtime_install = bool(
        _resolve_option(skip_runtime_install, config_values, "skip_runtime_install", default=False)
    )
    dry_run = bool(_resolve_option(dry_run, config_values, "dry_run", default=False))

    base_dir = _ask(
        _resolve_option(base_dir, config_values, "base_dir"),
        "Enter base directory for orchestrator",
        constants.DEFAULT_BASE_DIR,
        interactive,
    )
    timezone = _ask(
        _resolve_option(timezone, config_values, "timezone"),
        "Enter your timezone",
        constants.DEFAULT_TIMEZONE,
        interactive,
    )

    if interactive:
        console.print("\nSMTP configuration for LibreNMS:")
    smtp_host = _ask(
        _resolve_option(smtp_host, config_values, "smtp_host"),
        "SMTP host",
        constants.DEFAULT_SMTP_HOST,
        interactive,
    )
    smtp_port = _ask(
        _resolve_option(smtp_port, config_values, "smtp_port"),
        "SMTP port",
        constants.DEFAULT_SMTP_PORT,
        interactive,
        value_type=int,
    )
    smtp_user = _ask(
        _resolve_option(smtp_user, config_values, "smtp_user"),
        "SMTP username",
        constants.DEFAULT_SMTP_USER,
        interactive,
    )
    smtp_password = _ask(
        _resolve_option(smtp_password, config_values, "smtp_password"),
        "SMTP password",
        constants.DEFAULT_SMTP_PASSWORD,
        interactive,
        hide_input=True,
    )
    smtp_from = _ask(
        _resolve_option(smtp_from, config_values, "smtp_from"),
        "SMTP from address",
        smtp_user,
        interactive,
    )
    monitor_interface = _ask(
        _resolve_option(monitor_interface, config_values, "monitor_interface"),
        "Enter interface for passive monitoring (e.g., eth0)",
        constants.DEFAULT_MONITOR_INTERFACE,
        interactive,
    )

    try:
        orchestrator_config = OrchestratorConfig(
            base_dir=os.path.abspath(str(base_dir)),
            timezone=str(timezone),
            smtp=SmtpSettings(
                host=str(smtp_host),
                port=int(smtp_port),
                user=str(smtp_user),
                password=str(smtp_password),
                sender=str(smtp_from or ""),
            ),
            monitor_interface=str(monitor_interface),
            network_name=str(
                _resolve_option(network_name, config_values, "network_name", default=constants.DEFAULT_NETWORK_NAME)
            ),
            netbox_port=int(
                _resolve_option(netbox_port, config_values, "netbox_port", default=constants.DEFAULT_NETBOX_PORT)
            ),
            librenms_port=int(
                _resolve_option(librenms_port, config_values, "librenms_port", default=constants.DEFAULT_LIBRENMS_PORT)
            ),
            oxidized_port=int(
                _resolve_option(oxidized_port, config_values, "oxidized_port", default=constants.DEFAULT_OXIDIZED_PORT)
            ),
            netbox_postgres_version=str(config_values.get("netbox_postgres_version", "15")),
            librenms_mariadb_version=str(config_values.get("librenms_mariadb_version", "10")),
            netbox_superuser_email=str(config_values.get("netbox_superuser_email", "admin@example.com")),
            netbox_superuser_password=str(config_values.get("netbox_superuser_password", "admin")),
            readiness_attempts=int(
                _resolve_option(
                    readiness_attempts,
                    config_values,
                    "readiness_attempts",
                    default=constants.DEFAULT_READINESS_ATTEMPTS,
                )
            ),
            readiness_delay_seconds=float(
                _resolve_option(
                    readiness_delay,
                    config_values,
                    "readiness_delay_seconds",
                    default=constants.DEFAULT_READINESS_DELAY_SECONDS,
                )
            ),
            dry_run=dry_run,
        )
        stop_event = threading.Event()
        orchestrator = Orchestrator(
            config=orchestrator_config,
            skip_runtime_install=skip_runtime_install,
            stop_event=stop_event,
        )
    except (OrchestratorError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc

    previous_handler = _install_stop_handler(stop_event)
    try:
        exit_code = orchestrator.run()
    finally:
        if previous_handler is not None:
            signal.signal(signal.SIGTERM, previous_handler)
    raise SystemExit(exit_code)


@main.command()
@click.option("--config", required=False, type=click.Path(), help="Path to a YAML configuration file.")
@click.option("--base-dir", required=False, help="Base directory of the deployed stack.")
def diagnose(config, base_dir):
    """Print a read-only health report of a deployed stack."""
    config_values = _load_config(config)
    logger = logging.getLogger("netorchestrator")

    if shutil.which("docker") is None:
        console.print("[bold red]Docker is not installed on this host.[/bold red]")
        raise SystemExit(1)

    try:
        orchestrator_config = OrchestratorConfig(
            base_dir=os.path.abspath(
                str(_resolve_option(base_dir, config_values, "base_dir", default=constants.DEFAULT_BASE_DIR))
            ),
            timezone=str(config_values.get("timezone", constants.DEFAULT_TIMEZONE)),
            smtp=SmtpSettings(
                host=str(config_values.get("smtp_host", constants.DEFAULT_SMTP_HOST)),
                port=int(config_values.get("smtp_port", constants.DEFAULT_SMTP_PORT)),
                user=str(config_values.get("smtp_user", constants.DEFAULT_SMTP_USER)),
                password="",
            ),
            monitor_interface=str(config_values.get("monitor_interface", constants.DEFAULT_MONITOR_INTERFACE)),
            netbox_port=int(config_values.get("netbox_port", constants.DEFAULT_NETBOX_PORT)),
            librenms_port=int(config_values.get("librenms_port", constants.DEFAULT_LIBRENMS_PORT)),
            oxidized_port=int(config_values.get("oxidized_port", constants.DEFAULT_OXIDIZED_PORT)),
        )
    except (OrchestratorError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc

    runner = CommandRunner(logger=logger, default_timeout=30)
    service = DiagnosticsService(
        logger=logger,
        console=console,
        run_cmd=runner.run,
        docker_runtime=DockerRuntimeService(logger=logger, console=console),
    )
    service.run(orchestrator_config)


if __name__ == "__main__":
    main()
