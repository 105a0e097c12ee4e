"""Shared domain models for netorchestrator."""

import base64
import os
import secrets
from dataclasses import dataclass
from typing import Callable, List, Optional

from netorchestrator.constants import (
    DEFAULT_LIBRENMS_PORT,
    DEFAULT_LIBRENMS_WEB_READINESS_ATTEMPTS,
    DEFAULT_NETBOX_PORT,
    DEFAULT_NETWORK_NAME,
    DEFAULT_OXIDIZED_PORT,
    DEFAULT_READINESS_ATTEMPTS,
    DEFAULT_READINESS_DELAY_SECONDS,
    DEFAULT_WEB_READINESS_ATTEMPTS,
)
from netorchestrator.errors import OrchestratorError
from netorchestrator.errors_catalog import actionable_error


@dataclass(frozen=True)
class SmtpSettings:
    """Relay settings handed to the LibreNMS mail sidecar."""

    host: str
    port: int
    user: str
    password: str
    sender: str = ""

    @property
    def from_address(self) -> str:
        return self.sender or self.user


@dataclass(frozen=True)
class OrchestratorConfig:
    """Validated settings collected once at startup and shared by every phase."""

    base_dir: str
    timezone: str
    smtp: SmtpSettings
    monitor_interface: str
    network_name: str = DEFAULT_NETWORK_NAME
    netbox_port: int = DEFAULT_NETBOX_PORT
    librenms_port: int = DEFAULT_LIBRENMS_PORT
    oxidized_port: int = DEFAULT_OXIDIZED_PORT
    netbox_postgres_version: str = "15"
    librenms_mariadb_version: str = "10"
    netbox_superuser_email: str = "admin@example.com"
    netbox_superuser_password: str = "admin"
    readiness_attempts: int = DEFAULT_READINESS_ATTEMPTS
    readiness_delay_seconds: float = DEFAULT_READINESS_DELAY_SECONDS
    web_readiness_attempts: int = DEFAULT_WEB_READINESS_ATTEMPTS
    librenms_web_readiness_attempts: int = DEFAULT_LIBRENMS_WEB_READINESS_ATTEMPTS
    dry_run: bool = False

    def __post_init__(self):
        for label, value in (
            ("base directory", self.base_dir),
            ("timezone", self.timezone),
            ("monitoring interface", self.monitor_interface),
            ("network name", self.network_name),
        ):
            if not str(value or "").strip():
                raise OrchestratorError(actionable_error("invalid_config", detail=f"{label} is empty."))

        ports = {
            "NetBox port": self.netbox_port,
            "LibreNMS port": self.librenms_port,
            "Oxidized port": self.oxidized_port,
            "SMTP port": self.smtp.port,
        }
        for label, port in ports.items():
            if not isinstance(port, int) or not 1 <= port <= 65535:
                raise OrchestratorError(
                    actionable_error("invalid_config", detail=f"{label} must be between 1 and 65535.")
                )

        published = [self.netbox_port, self.librenms_port, self.oxidized_port]
        if len(set(published)) != len(published):
            raise OrchestratorError(
                actionable_error("invalid_config", detail="published web ports must be distinct.")
            )

        for label, attempts in (
            ("readiness attempts", self.readiness_attempts),
            ("web readiness attempts", self.web_readiness_attempts),
            ("LibreNMS web readiness attempts", self.librenms_web_readiness_attempts),
        ):
            if attempts < 1:
                raise OrchestratorError(actionable_error("invalid_config", detail=f"{label} must be at least 1."))

        if self.readiness_delay_seconds < 0:
            raise OrchestratorError(
                actionable_error("invalid_config", detail="readiness delay cannot be negative.")
            )

    def phase_dir(self, name: str) -> str:
        return os.path.join(self.base_dir, name)


@dataclass(frozen=True)
class GeneratedSecrets:
    """Per-run random values substituted into the rendered service files."""

    librenms_db_password: str
    netbox_db_password: str
    netbox_secret_key: str

    @classmethod
    def generate(cls) -> "GeneratedSecrets":
        return cls(
            librenms_db_password=base64.b64encode(secrets.token_bytes(24)).decode("ascii"),
            netbox_db_password=base64.urlsafe_b64encode(secrets.token_bytes(24)).decode("ascii"),
            netbox_secret_key=base64.b64encode(secrets.token_bytes(64)).decode("ascii"),
        )


@dataclass(frozen=True)
class ReadinessCheck:
    """A bounded probe confirming a started service accepts requests."""

    name: str
    probe: Callable[[], bool]
    max_attempts: int
    delay_seconds: float
    fatal: bool = True
    target: str = ""


def _no_checks() -> List[ReadinessCheck]:
    return []


@dataclass(frozen=True)
class Phase:
    """One ordered provisioning step covering a single downstream service."""

    index: int
    name: str
    label: str
    directory: str
    render: Callable[[], None]
    start: Optional[Callable[[], None]] = None
    checks: Callable[[], List[ReadinessCheck]] = _no_checks
    fatal: bool = True


@dataclass(frozen=True)
class PhaseOutcome:
    name: str
    status: str
    error: Optional[str] = None


@dataclass(frozen=True)
class DiagnosticResult:
    name: str
    ok: bool
    detail: str = ""
