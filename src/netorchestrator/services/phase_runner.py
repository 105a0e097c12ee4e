"""Sequential phase execution for netorchestrator."""

from typing import Iterable, List, Optional

from netorchestrator.errors import OrchestratorError
from netorchestrator.models import Phase, PhaseOutcome


class PhaseRunner:
    """Runs phase descriptors in increasing index order.

    Each phase renders its files, starts its containers and waits for its
    readiness checks before the next phase renders anything. A failure in a
    fatal phase propagates and ends the run; a best-effort phase only logs it.
    """

    BANNER_RULE = "=" * 52

    def __init__(self, logger, console, filesystem_service, poller, manifest_service=None, dry_run: bool = False):
        self.logger = logger
        self.console = console
        self.filesystem_service = filesystem_service
        self.poller = poller
        self.manifest_service = manifest_service
        self.dry_run = dry_run

    @staticmethod
    def order(phases: Iterable[Phase]) -> List[Phase]:
        ordered = sorted(phases, key=lambda phase: phase.index)
        indices = [phase.index for phase in ordered]
        if len(indices) != len(set(indices)):
            raise OrchestratorError(f"Duplicate phase index in {indices}.")
        return ordered

    def banner(self, phase: Phase):
        self.console.print()
        self.console.print(self.BANNER_RULE)
        self.console.print(f"[bold green][*] Phase {phase.label} completed[/bold green]")
        self.console.print(self.BANNER_RULE)
        self.console.print()

    def run(self, phases: Iterable[Phase]) -> List[PhaseOutcome]:
        outcomes: List[PhaseOutcome] = []
        for phase in self.order(phases):
            self.poller.raise_if_cancelled(f"Phase {phase.label}")
            outcomes.append(self.run_phase(phase))
        return outcomes

    def run_phase(self, phase: Phase) -> PhaseOutcome:
        self.logger.info("Starting phase %s (%s)", phase.index, phase.name)
        if self.manifest_service:
            self.manifest_service.phase_started(phase.name, details={"index": phase.index, "fatal": phase.fatal})

        try:
            all_ready = self._execute(phase)
        except OrchestratorError as exc:
            if phase.fatal:
                self._record(phase, "failed", str(exc))
                raise

            self.logger.warning("Phase %s (%s) failed and was skipped: %s", phase.index, phase.name, exc)
            outcome = self._record(phase, "warning", str(exc))
            self.banner(phase)
            return outcome
        except BaseException as exc:
            self._record(phase, "failed", str(exc) or type(exc).__name__)
            raise

        if self.dry_run:
            status = "skipped"
        else:
            status = "success" if all_ready else "warning"
        outcome = self._record(phase, status)
        self.banner(phase)
        return outcome

    def _execute(self, phase: Phase) -> bool:
        self.filesystem_service.ensure_dir(phase.directory)
        phase.render()

        if self.dry_run:
            self.logger.info("Dry run: not starting containers for phase %s.", phase.name)
            return True

        if phase.start is not None:
            phase.start()

        results = [self.poller.wait_for(check) for check in phase.checks()]
        return all(results)

    def _record(self, phase: Phase, status: str, error: Optional[str] = None) -> PhaseOutcome:
        if self.manifest_service:
            self.manifest_service.phase_finished(phase.name, status, error=error)
        return PhaseOutcome(name=phase.name, status=status, error=error)
