"""Bounded readiness polling for started services."""

import threading
import time
from typing import Callable, List, Optional

import requests

from netorchestrator.errors import OrchestratorError, ReadinessError
from netorchestrator.errors_catalog import actionable_error
from netorchestrator.models import ReadinessCheck


class ReadinessPoller:
    """Retries a probe a fixed number of times with a fixed delay.

    The delay is only spent between attempts: attempt ``k`` starts after
    ``(k - 1) * delay_seconds`` of waiting and the last failure returns
    immediately. There is no backoff and no jitter.
    """

    def __init__(
        self,
        logger,
        console,
        sleep: Callable[[float], None] = time.sleep,
        stop_event: Optional[threading.Event] = None,
    ):
        self.logger = logger
        self.console = console
        self.sleep = sleep
        self.stop_event = stop_event

    def poll(
        self,
        probe: Callable[[], bool],
        max_attempts: int,
        delay_seconds: float,
        label: str = "service",
    ) -> bool:
        if max_attempts < 1:
            raise OrchestratorError("Readiness polling needs at least one attempt.")

        for attempt in range(1, max_attempts + 1):
            self.raise_if_cancelled(f"Readiness polling for {label}")

            try:
                ready = bool(probe())
            except (OrchestratorError, OSError) as exc:
                self.logger.debug("Readiness probe for %s raised: %s", label, exc)
                ready = False

            if ready:
                self.logger.debug("%s ready after %s attempt(s)", label, attempt)
                return True

            if attempt == max_attempts:
                break

            self.console.print(f"[dim][*] {label} not ready, retry {attempt}/{max_attempts}...[/dim]")
            self._wait(delay_seconds)

        return False

    def wait_for(self, check: ReadinessCheck) -> bool:
        self.console.print(f"[yellow][*] Waiting for {check.name}...[/yellow]")
        ready = self.poll(check.probe, check.max_attempts, check.delay_seconds, label=check.name)

        if ready:
            self.console.print(f"[green][*] {check.name} ready[/green]")
            return True

        message = actionable_error(
            "readiness_exhausted",
            name=check.name,
            attempts=str(check.max_attempts),
            target=check.target or "<container>",
        )
        if check.fatal:
            raise ReadinessError(message)

        self.logger.warning(message)
        return False

    def wait_for_all(self, checks: List[ReadinessCheck]) -> bool:
        results = [self.wait_for(check) for check in checks]
        return all(results)

    def _wait(self, delay_seconds: float):
        if self.stop_event is None:
            self.sleep(delay_seconds)
            return

        self.stop_event.wait(delay_seconds)

    def raise_if_cancelled(self, what: str):
        if self.stop_event is not None and self.stop_event.is_set():
            raise OrchestratorError(f"{what} was cancelled.")


def container_command_probe(run_cmd: Callable, container: str, command: List[str]) -> Callable[[], bool]:
    """Builds a probe that succeeds when ``command`` exits 0 inside ``container``."""

    def probe() -> bool:
        result = run_cmd(["docker", "exec", container] + command, check=False, capture_output=True)
        return result.returncode == 0

    return probe


def http_probe(url: str, timeout: float = 5.0, requests_module=requests) -> Callable[[], bool]:
    """Builds a probe that succeeds when ``url`` answers with a non-error status."""

    def probe() -> bool:
        try:
            response = requests_module.get(url, timeout=timeout, allow_redirects=True)
        except requests_module.RequestException:
            return False

        try:
            return response.status_code < 400
        finally:
            response.close()

    return probe
