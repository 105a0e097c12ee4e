import subprocess

import pytest

from netorchestrator.errors import OrchestratorError
from netorchestrator.services.runtime_installer import RuntimeInstallerService


class DummyLogger:
    def info(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None


class DummyConsole:
    def print(self, *_args, **_kwargs):
        return None


class RecordingRunner:
    def __init__(self, outputs=None, returncodes=None):
        self.calls = []
        self.outputs = outputs or {}
        self.returncodes = returncodes or {}

    def __call__(self, cmd, check=True, capture_output=False, **kwargs):
        self.calls.append(cmd)
        key = cmd[0]
        return subprocess.CompletedProcess(
            cmd,
            self.returncodes.get(key, 0),
            stdout=self.outputs.get(key, ""),
            stderr="",
        )


class FakeKeyResponse:
    text = "-----BEGIN PGP PUBLIC KEY BLOCK-----\n"

    def raise_for_status(self):
        return None


class FakeRequests:
    RequestException = Exception

    def __init__(self):
        self.urls = []

    def get(self, url, timeout):
        self.urls.append(url)
        return FakeKeyResponse()


def test_ensure_docker_is_a_noop_when_docker_exists():
    runner = RecordingRunner()
    service = RuntimeInstallerService(
        logger=DummyLogger(),
        console=DummyConsole(),
        run_cmd=runner,
        which=lambda name: f"/usr/bin/{name}",
    )

    assert service.ensure_docker() is False
    assert runner.calls == []


def test_ensure_docker_fails_fast_without_apt_get():
    runner = RecordingRunner()
    service = RuntimeInstallerService(
        logger=DummyLogger(),
        console=DummyConsole(),
        run_cmd=runner,
        which=lambda name: None,
    )

    with pytest.raises(OrchestratorError, match="apt-get"):
        service.ensure_docker()

    assert runner.calls == []


def test_ensure_docker_installs_from_vendor_repository(monkeypatch, tmp_path):
    installed = {"docker": False}
    runner = RecordingRunner(outputs={"dpkg": "amd64\n", "lsb_release": "jammy\n"})

    def which(name):
        if name == "docker":
            return "/usr/bin/docker" if installed["docker"] else None
        return f"/usr/bin/{name}"

    def run_cmd(cmd, **kwargs):
        if cmd[:2] == ["systemctl", "start"]:
            installed["docker"] = True
        return runner(cmd, **kwargs)

    monkeypatch.setattr(RuntimeInstallerService, "KEYRING_DIR", str(tmp_path / "keyrings"))
    monkeypatch.setattr(RuntimeInstallerService, "KEYRING_PATH", str(tmp_path / "keyrings" / "docker.gpg"))
    monkeypatch.setattr(RuntimeInstallerService, "SOURCES_LIST_PATH", str(tmp_path / "docker.list"))
    (tmp_path / "keyrings").mkdir()
    (tmp_path / "keyrings" / "docker.gpg").write_bytes(b"")

    fake_requests = FakeRequests()
    service = RuntimeInstallerService(
        logger=DummyLogger(),
        console=DummyConsole(),
        run_cmd=run_cmd,
        which=which,
        requests_module=fake_requests,
    )

    assert service.ensure_docker() is True

    commands = [" ".join(cmd) for cmd in runner.calls]
    assert commands[0] == "apt-get update"
    assert commands[1].startswith("apt-get install -y ca-certificates")
    assert "apt-get install -y docker-ce docker-ce-cli containerd.io docker-compose-plugin" in commands
    assert commands[-2:] == ["systemctl enable docker", "systemctl start docker"]
    assert fake_requests.urls == [RuntimeInstallerService.DOCKER_GPG_URL]

    sources = (tmp_path / "docker.list").read_text(encoding="utf-8")
    assert "deb [arch=amd64 signed-by=" in sources
    assert sources.rstrip().endswith("jammy stable")


def test_ensure_docker_group_adds_missing_member():
    runner = RecordingRunner(outputs={"id": "alice adm\n"})
    service = RuntimeInstallerService(logger=DummyLogger(), console=DummyConsole(), run_cmd=runner)

    service.ensure_docker_group("alice")

    assert ["usermod", "-aG", "docker", "alice"] in runner.calls


def test_ensure_docker_group_skips_existing_member_and_root():
    runner = RecordingRunner(outputs={"id": "alice docker\n"})
    service = RuntimeInstallerService(logger=DummyLogger(), console=DummyConsole(), run_cmd=runner)

    service.ensure_docker_group("alice")
    service.ensure_docker_group("root")

    assert all(cmd[0] != "usermod" for cmd in runner.calls)
    assert all(cmd[-1] != "root" for cmd in runner.calls)


def test_keyring_directory_failure_is_a_domain_error(monkeypatch, tmp_path):
    blocker = tmp_path / "apt"
    blocker.write_text("not a directory\n", encoding="utf-8")
    monkeypatch.setattr(RuntimeInstallerService, "KEYRING_DIR", str(blocker / "keyrings"))

    fake_requests = FakeRequests()
    service = RuntimeInstallerService(
        logger=DummyLogger(),
        console=DummyConsole(),
        run_cmd=RecordingRunner(),
        which=lambda name: f"/usr/bin/{name}",
        requests_module=fake_requests,
    )

    with pytest.raises(OrchestratorError, match="Could not create"):
        service._install_signing_key()

    assert fake_requests.urls == []


def test_sources_list_failure_is_a_domain_error(monkeypatch, tmp_path):
    monkeypatch.setattr(RuntimeInstallerService, "SOURCES_LIST_PATH", str(tmp_path / "missing" / "docker.list"))
    service = RuntimeInstallerService(
        logger=DummyLogger(),
        console=DummyConsole(),
        run_cmd=RecordingRunner(outputs={"dpkg": "amd64\n", "lsb_release": "jammy\n"}),
        which=lambda name: f"/usr/bin/{name}",
    )

    with pytest.raises(OrchestratorError, match="Could not write"):
        service._write_sources_list()
