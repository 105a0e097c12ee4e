import pytest

from netorchestrator.errors_catalog import actionable_error


def test_actionable_error_formats_message_with_suggested_action():
    message = actionable_error("readiness_exhausted", name="NetBox PostgreSQL", attempts=30, target="netbox-db")

    assert "NetBox PostgreSQL did not become ready after 30 attempts." in message
    assert "Suggested action: Inspect `docker logs netbox-db`" in message


def test_privilege_error_names_the_command_to_rerun():
    message = actionable_error("privilege_required", command="netorchestrator deploy")

    assert "sudo -E netorchestrator deploy" in message


def test_unknown_error_code_raises_key_error():
    with pytest.raises(KeyError):
        actionable_error("no_such_code")
