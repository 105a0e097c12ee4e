import json
import os
import threading

import pytest

from netorchestrator.errors import OrchestratorError, ReadinessError
from netorchestrator.models import Phase, ReadinessCheck
from netorchestrator.services.filesystem import FileSystemService
from netorchestrator.services.manifest import ManifestService
from netorchestrator.services.phase_runner import PhaseRunner
from netorchestrator.services.readiness import ReadinessPoller


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None

    def info(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None


class DummyConsole:
    def print(self, *_args, **_kwargs):
        return None


def _runner(sleeps=None, manifest_service=None, dry_run=False):
    sleeps = [] if sleeps is None else sleeps
    poller = ReadinessPoller(logger=DummyLogger(), console=DummyConsole(), sleep=sleeps.append)
    return PhaseRunner(
        logger=DummyLogger(),
        console=DummyConsole(),
        filesystem_service=FileSystemService(logger=DummyLogger(), console=DummyConsole()),
        poller=poller,
        manifest_service=manifest_service,
        dry_run=dry_run,
    )


def _file_phase(tmp_path, index, events, fatal=True, checks=None, start=None):
    directory = tmp_path / f"phase{index}"
    target = directory / "docker-compose.yml"

    def render():
        events.append(("render", index))
        target.write_text("services: {}\n", encoding="utf-8")

    return Phase(
        index=index,
        name=f"phase{index}",
        label=str(index),
        directory=str(directory),
        render=render,
        start=start,
        checks=checks or (lambda: []),
        fatal=fatal,
    )


def test_phases_run_in_increasing_index_order(tmp_path):
    events = []
    phases = [_file_phase(tmp_path, index, events) for index in (4, 0, 2)]

    outcomes = _runner().run(phases)

    assert [event for event in events] == [("render", 0), ("render", 2), ("render", 4)]
    assert [outcome.status for outcome in outcomes] == ["success"] * 3


def test_duplicate_phase_indices_are_rejected(tmp_path):
    events = []
    phases = [_file_phase(tmp_path, 1, events), _file_phase(tmp_path, 1, events)]

    with pytest.raises(OrchestratorError, match="Duplicate phase index"):
        _runner().run(phases)
    assert events == []


def test_files_exist_before_readiness_check(tmp_path):
    events = []
    seen = {}
    compose_file = tmp_path / "phase1" / "docker-compose.yml"

    def probe():
        seen["exists"] = compose_file.exists()
        return True

    check = ReadinessCheck(name="db", probe=probe, max_attempts=3, delay_seconds=2.0)
    phase = _file_phase(tmp_path, 1, events, checks=lambda: [check])

    _runner().run([phase])

    assert seen["exists"] is True


def test_fatal_readiness_failure_stops_before_next_phase(tmp_path):
    events = []
    probes = []
    sleeps = []

    def probe():
        probes.append(1)
        return False

    check = ReadinessCheck(name="NetBox PostgreSQL", probe=probe, max_attempts=5, delay_seconds=2.0)
    phases = [
        _file_phase(tmp_path, 1, events, checks=lambda: [check]),
        _file_phase(tmp_path, 2, events),
    ]

    with pytest.raises(ReadinessError):
        _runner(sleeps=sleeps).run(phases)

    assert len(probes) == 5
    assert sleeps == [2.0] * 4
    assert ("render", 2) not in events
    assert not (tmp_path / "phase2").exists()


def test_best_effort_phase_failure_does_not_stop_later_phases(tmp_path):
    events = []

    def failing_start():
        raise OrchestratorError("zeek image pull failed")

    phases = [
        _file_phase(tmp_path, 5, events, fatal=False, start=failing_start),
        _file_phase(tmp_path, 6, events),
    ]

    outcomes = _runner().run(phases)

    assert [(outcome.name, outcome.status) for outcome in outcomes] == [
        ("phase5", "warning"),
        ("phase6", "success"),
    ]
    assert "zeek image pull failed" in outcomes[0].error
    assert ("render", 6) in events


def test_non_fatal_check_marks_phase_as_warning(tmp_path):
    events = []
    check = ReadinessCheck(name="web", probe=lambda: False, max_attempts=2, delay_seconds=0.0, fatal=False)

    outcomes = _runner().run([_file_phase(tmp_path, 1, events, checks=lambda: [check])])

    assert outcomes[0].status == "warning"


def test_dry_run_renders_but_skips_start_and_checks(tmp_path):
    events = []

    def start():
        events.append(("start", 1))

    def checks():
        raise AssertionError("checks must not be built in dry run")

    phase = _file_phase(tmp_path, 1, events, start=start, checks=checks)

    outcomes = _runner(dry_run=True).run([phase])

    assert events == [("render", 1)]
    assert outcomes[0].status == "skipped"


def test_phase_results_are_recorded_in_manifest(tmp_path):
    events = []
    manifest_file = tmp_path / "run-manifest.json"
    manifest = ManifestService(str(manifest_file), logger=DummyLogger())

    def failing_start():
        raise OrchestratorError("compose up failed")

    phases = [
        _file_phase(tmp_path, 0, events),
        _file_phase(tmp_path, 1, events, start=failing_start),
    ]

    with pytest.raises(OrchestratorError):
        _runner(manifest_service=manifest).run(phases)

    data = json.loads(manifest_file.read_text(encoding="utf-8"))
    assert [(phase["name"], phase["status"]) for phase in data["phases"]] == [
        ("phase0", "success"),
        ("phase1", "failed"),
    ]
    assert data["phases"][1]["error"] == "compose up failed"
    assert os.path.isdir(tmp_path / "phase1")


def test_stop_request_halts_before_the_next_phase(tmp_path):
    events = []
    stop_event = threading.Event()
    runner = PhaseRunner(
        logger=DummyLogger(),
        console=DummyConsole(),
        filesystem_service=FileSystemService(logger=DummyLogger(), console=DummyConsole()),
        poller=ReadinessPoller(logger=DummyLogger(), console=DummyConsole(), stop_event=stop_event),
    )
    phases = [
        _file_phase(tmp_path, 0, events, start=stop_event.set),
        _file_phase(tmp_path, 1, events),
    ]

    with pytest.raises(OrchestratorError, match="Phase 1 was cancelled"):
        runner.run(phases)

    assert events == [("render", 0)]
    assert not (tmp_path / "phase1").exists()
