"""Configuration loader for netorchestrator."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from netorchestrator.errors import OrchestratorError


class ConfigLoader:
    """Loads YAML configuration files for CLI defaults."""

    SUPPORTED_KEYS = {
        "base_dir",
        "timezone",
        "smtp_host",
        "smtp_port",
        "smtp_user",
        "smtp_password",
        "smtp_from",
        "monitor_interface",
        "network_name",
        "netbox_port",
        "librenms_port",
        "oxidized_port",
        "netbox_postgres_version",
        "librenms_mariadb_version",
        "netbox_superuser_email",
        "netbox_superuser_password",
        "readiness_attempts",
        "readiness_delay_seconds",
        "non_interactive",
        "skip_runtime_install",
        "dry_run",
        "verbose",
        "log_file",
    }

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise OrchestratorError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise OrchestratorError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise OrchestratorError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise OrchestratorError(f"Unknown configuration keys: {unknown_list}")

        return parsed
