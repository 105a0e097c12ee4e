"""Actionable error catalog for netorchestrator."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "privilege_required": {
        "what": "Provisioning requires root privileges.",
        "next": "Re-run the command with `sudo -E {command}`.",
    },
    "unsupported_package_manager": {
        "what": "Docker is not installed and this host has no `apt-get`.",
        "next": "Install Docker Engine and the compose plugin manually, then retry.",
    },
    "docker_unavailable": {
        "what": "Docker is still unavailable after the installation attempt.",
        "next": "Check `systemctl status docker` and the apt output above.",
    },
    "compose_unavailable": {
        "what": "Docker Compose is not available.",
        "next": "Install Docker Compose v2 (`docker compose`) or v1 (`docker-compose`) and try again.",
    },
    "readiness_exhausted": {
        "what": "{name} did not become ready after {attempts} attempts.",
        "next": "Inspect `docker logs {target}` and available resources, then re-run.",
    },
    "invalid_config": {
        "what": "Invalid configuration: {detail}",
        "next": "Fix the value on the command line or in the configuration file.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
