import base64

import pytest

from netorchestrator.errors import OrchestratorError
from netorchestrator.models import GeneratedSecrets, OrchestratorConfig, SmtpSettings


def _config(**overrides):
    values = dict(
        base_dir="/opt/orchestrator",
        timezone="America/New_York",
        smtp=SmtpSettings(host="smtp.gmail.com", port=587, user="user@example.com", password="changeme"),
        monitor_interface="eth0",
    )
    values.update(overrides)
    return OrchestratorConfig(**values)


def test_config_defaults_match_published_ports():
    config = _config()

    assert (config.netbox_port, config.librenms_port, config.oxidized_port) == (8080, 8000, 8888)
    assert config.readiness_attempts == 30
    assert config.phase_dir("netbox") == "/opt/orchestrator/netbox"


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"monitor_interface": " "}, "monitoring interface is empty"),
        ({"netbox_port": 70000}, "NetBox port must be between 1 and 65535"),
        ({"librenms_port": 8080}, "published web ports must be distinct"),
        ({"readiness_attempts": 0}, "readiness attempts must be at least 1"),
        ({"readiness_delay_seconds": -1.0}, "readiness delay cannot be negative"),
    ],
)
def test_config_rejects_invalid_values(overrides, message):
    with pytest.raises(OrchestratorError, match=message):
        _config(**overrides)


def test_smtp_sender_defaults_to_user():
    assert SmtpSettings("smtp.example.com", 25, "noc@example.com", "").from_address == "noc@example.com"
    assert SmtpSettings("smtp.example.com", 25, "noc", "", sender="alerts@example.com").from_address == (
        "alerts@example.com"
    )


def test_generated_secrets_are_random_base64():
    first = GeneratedSecrets.generate()
    second = GeneratedSecrets.generate()

    assert first != second
    assert len(base64.b64decode(first.netbox_secret_key)) == 64
    assert len(base64.b64decode(first.librenms_db_password)) == 24
    assert len(base64.urlsafe_b64decode(first.netbox_db_password)) == 24
