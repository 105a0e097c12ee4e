"""Domain errors for netorchestrator."""


class OrchestratorError(RuntimeError):
    """Raised when provisioning cannot continue safely."""


class PrivilegeError(OrchestratorError):
    """Raised when the process lacks the privileges provisioning needs."""


class ReadinessError(OrchestratorError):
    """Raised when a fatal readiness check exhausts its attempts."""
