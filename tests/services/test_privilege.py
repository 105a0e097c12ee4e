import pytest

from netorchestrator.errors import PrivilegeError
from netorchestrator.services.privilege import PrivilegeService


class DummyLogger:
    def info(self, *_args, **_kwargs):
        return None


class FakeOs:
    def __init__(self, euid):
        self.euid = euid

    def geteuid(self):
        return self.euid


def test_require_root_passes_for_root():
    service = PrivilegeService(logger=DummyLogger(), os_module=FakeOs(0), environ={})

    service.require_root()

    assert service.is_root() is True


def test_require_root_fails_fast_with_rerun_hint():
    service = PrivilegeService(logger=DummyLogger(), os_module=FakeOs(1000), environ={})

    with pytest.raises(PrivilegeError, match="sudo -E netorchestrator deploy"):
        service.require_root("netorchestrator deploy")


def test_is_root_is_false_without_geteuid():
    service = PrivilegeService(logger=DummyLogger(), os_module=object(), environ={})

    assert service.is_root() is False


def test_real_user_prefers_sudo_user():
    service = PrivilegeService(
        logger=DummyLogger(),
        os_module=FakeOs(0),
        environ={"SUDO_USER": "alice", "LOGNAME": "root"},
    )

    assert service.real_user() == "alice"


def test_real_user_falls_back_to_login_name():
    service = PrivilegeService(logger=DummyLogger(), os_module=FakeOs(0), environ={"LOGNAME": "ops"})

    assert service.real_user() == "ops"
