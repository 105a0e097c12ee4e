import pytest

from netorchestrator.errors import OrchestratorError
from netorchestrator.services.config_loader import ConfigLoader


def test_config_loader_loads_yaml_mapping(tmp_path):
    config_file = tmp_path / ".netorchestrator.yml"
    config_file.write_text(
        "base_dir: /srv/orchestrator\nsmtp_port: 2525\nmonitor_interface: ens192\ndry_run: true\n",
        encoding="utf-8",
    )

    loader = ConfigLoader()
    loaded = loader.load(str(config_file))

    assert loaded["base_dir"] == "/srv/orchestrator"
    assert loaded["smtp_port"] == 2525
    assert loaded["monitor_interface"] == "ens192"
    assert loaded["dry_run"] is True


def test_config_loader_rejects_unknown_keys(tmp_path):
    config_file = tmp_path / ".netorchestrator.yml"
    config_file.write_text("grafana_port: 3000\n", encoding="utf-8")

    loader = ConfigLoader()

    with pytest.raises(OrchestratorError, match="Unknown configuration keys: grafana_port"):
        loader.load(str(config_file))


def test_config_loader_returns_empty_mapping_without_path_or_content(tmp_path):
    empty_file = tmp_path / "empty.yml"
    empty_file.write_text("", encoding="utf-8")

    loader = ConfigLoader()

    assert loader.load(None) == {}
    assert loader.load(str(empty_file)) == {}


def test_config_loader_rejects_missing_file_and_non_mapping(tmp_path):
    list_file = tmp_path / "list.yml"
    list_file.write_text("- base_dir\n- timezone\n", encoding="utf-8")

    loader = ConfigLoader()

    with pytest.raises(OrchestratorError, match="Config file not found"):
        loader.load(str(tmp_path / "missing.yml"))
    with pytest.raises(OrchestratorError, match="YAML mapping"):
        loader.load(str(list_file))
