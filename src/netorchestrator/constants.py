"""Shared constants for netorchestrator."""

DIR_MODE = 0o755
FILE_MODE = 0o644
SCRIPT_MODE = 0o755

CONTAINER_UID = 1000
CONTAINER_GID = 1000

DEFAULT_BASE_DIR = "/opt/orchestrator"
DEFAULT_TIMEZONE = "America/New_York"
DEFAULT_NETWORK_NAME = "orchestrator_net"
DEFAULT_MONITOR_INTERFACE = "eth0"

DEFAULT_SMTP_HOST = "smtp.gmail.com"
DEFAULT_SMTP_PORT = 587
DEFAULT_SMTP_USER = "user@example.com"
DEFAULT_SMTP_PASSWORD = "changeme"

DEFAULT_NETBOX_PORT = 8080
DEFAULT_LIBRENMS_PORT = 8000
DEFAULT_OXIDIZED_PORT = 8888

DEFAULT_READINESS_ATTEMPTS = 30
DEFAULT_READINESS_DELAY_SECONDS = 2.0
DEFAULT_WEB_READINESS_ATTEMPTS = 60
DEFAULT_LIBRENMS_WEB_READINESS_ATTEMPTS = 90

NETBOX_TAGS = "observed-only,enriched,validated,manual,no-auto-update"

MANIFEST_FILE_NAME = "run-manifest.json"
