"""
netorchestrator - phased bootstrap of a single-host network-monitoring stack
"""

__version__ = "2.5.0"

from .core import Orchestrator
from .errors import OrchestratorError

__all__ = ["Orchestrator", "OrchestratorError"]
