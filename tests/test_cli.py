"""Tests for the typer command line interface."""

import json

import pytest
from typer.testing import CliRunner

from buildorder import __version__
from buildorder.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _no_config_files(tmp_path, monkeypatch):
    """Keep config discovery away from the developer's own files."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))


@pytest.fixture
def replay_file(tmp_path, replay_dict):
    path = tmp_path / "match.json"
    path.write_text(json.dumps(replay_dict), encoding="utf-8")
    return path


class TestGlobalOptions:
    """Tests for options on the app callback."""

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestEnrichCommand:
    """Tests for `buildorder enrich`."""

    def test_writes_enriched_json(self, data_dir, replay_file, tmp_path):
        output = tmp_path / "enriched.json"
        result = runner.invoke(app, ["enrich", str(replay_file), "--data-dir", str(data_dir), "-o", str(output)])
        assert result.exit_code == 0, result.stdout
        assert "Gazala Landing Ground" in result.stdout

        data = json.loads(output.read_text(encoding="utf-8"))
        rommel = data["players"][0]
        assert rommel["commands"][1]["building_name"] == "Light Support Kompanie"
        assert len(rommel["build_commands"]) == 5

    def test_filter_options(self, data_dir, replay_file, tmp_path):
        output = tmp_path / "enriched.json"
        result = runner.invoke(
            app,
            ["enrich", str(replay_file), "-d", str(data_dir), "-p", "combat", "-c", "cancel", "-o", str(output)],
        )
        assert result.exit_code == 0, result.stdout
        build = json.loads(output.read_text(encoding="utf-8"))["players"][0]["build_commands"]
        assert [c["command_type"] for c in build] == ["use_ability", "cancel_production"]

    def test_no_tracking(self, data_dir, replay_file, tmp_path):
        output = tmp_path / "enriched.json"
        result = runner.invoke(
            app, ["enrich", str(replay_file), "-d", str(data_dir), "--no-tracking", "-o", str(output)]
        )
        assert result.exit_code == 0
        construct = json.loads(output.read_text(encoding="utf-8"))["players"][0]["commands"][1]
        assert construct["building_name"] == "afrika_korps Building (Structure #7)"

    def test_config_file(self, data_dir, replay_file, tmp_path):
        """Settings come from --config when no options override them."""
        config = tmp_path / "custom.json"
        config.write_text(json.dumps({"data": {"data_dir": str(data_dir)}, "filter": {"kinds": ["use_ability"]}}))
        output = tmp_path / "enriched.json"
        result = runner.invoke(app, ["enrich", str(replay_file), "--config", str(config), "-o", str(output)])
        assert result.exit_code == 0, result.stdout
        build = json.loads(output.read_text(encoding="utf-8"))["players"][0]["build_commands"]
        assert [c["unit_name"] for c in build] == ["Panzerjäger Squad"]

    def test_unknown_preset_exits_1(self, data_dir, replay_file):
        result = runner.invoke(app, ["enrich", str(replay_file), "-d", str(data_dir), "-p", "nope"])
        assert result.exit_code == 1
        assert "Unknown filter preset" in result.stdout

    def test_malformed_replay_exits_1(self, data_dir, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{", encoding="utf-8")
        result = runner.invoke(app, ["enrich", str(path), "-d", str(data_dir)])
        assert result.exit_code == 1

    def test_malformed_config_file_exits_1(self, replay_file, tmp_path):
        config = tmp_path / "broken.yaml"
        config.write_text("tracking: [unclosed\n", encoding="utf-8")
        result = runner.invoke(app, ["enrich", str(replay_file), "--config", str(config)])
        assert result.exit_code == 1
        assert "Error" in result.stdout
        assert "Cannot parse config file" in result.stdout

    def test_invalid_config_value_exits_1(self, replay_file, tmp_path):
        config = tmp_path / "negative.json"
        config.write_text(json.dumps({"tracking": {"correlation_window_ms": -5}}))
        result = runner.invoke(app, ["enrich", str(replay_file), "--config", str(config)])
        assert result.exit_code == 1
        assert "Invalid configuration" in result.stdout

    def test_missing_reference_data_warns(self, replay_file, tmp_path):
        result = runner.invoke(app, ["enrich", str(replay_file), "-d", str(tmp_path / "missing")])
        assert result.exit_code == 0
        assert "no reference data" in result.stdout


class TestResolveCommand:
    """Tests for `buildorder resolve`."""

    def test_resolve_squad(self, data_dir):
        result = runner.invoke(app, ["resolve", "198340", "--data-dir", str(data_dir)])
        assert result.exit_code == 0
        assert "Panzergrenadier Squad" in result.stdout
        assert "Infantry" in result.stdout

    def test_resolve_battlegroup(self, data_dir):
        result = runner.invoke(app, ["resolve", "2075338", "-d", str(data_dir)])
        assert result.exit_code == 0
        assert "Armored Support" in result.stdout

    def test_not_found(self, data_dir):
        result = runner.invoke(app, ["resolve", "12345", "-d", str(data_dir)])
        assert result.exit_code == 1

    def test_invalid_id(self, data_dir):
        result = runner.invoke(app, ["resolve", "abc", "-d", str(data_dir)])
        assert result.exit_code == 1
        assert "not a valid blueprint id" in result.stdout

    def test_missing_data(self, tmp_path):
        result = runner.invoke(app, ["resolve", "198340", "-d", str(tmp_path / "missing")])
        assert result.exit_code == 1

    def test_malformed_config_file(self, data_dir, tmp_path):
        config = tmp_path / "broken.toml"
        config.write_text("[data\n", encoding="utf-8")
        result = runner.invoke(app, ["resolve", "198340", "-d", str(data_dir), "--config", str(config)])
        assert result.exit_code == 1
        assert "Cannot parse config file" in result.stdout


class TestOtherCommands:
    """Tests for presets and init-config."""

    def test_presets(self):
        result = runner.invoke(app, ["presets"])
        assert result.exit_code == 0
        assert "economic" in result.stdout
        assert "construct_entity" in result.stdout

    def test_init_config(self, tmp_path):
        path = tmp_path / "buildorder.yaml"
        result = runner.invoke(app, ["init-config", str(path)])
        assert result.exit_code == 0
        assert "correlation_window_ms" in path.read_text()

    def test_init_config_refuses_overwrite(self, tmp_path):
        path = tmp_path / "buildorder.yaml"
        path.write_text("keep me")
        result = runner.invoke(app, ["init-config", str(path)])
        assert result.exit_code == 1
        assert path.read_text() == "keep me"

        result = runner.invoke(app, ["init-config", str(path), "--force"])
        assert result.exit_code == 0
        assert path.read_text() != "keep me"

    def test_init_config_unsupported_format(self, tmp_path):
        result = runner.invoke(app, ["init-config", str(tmp_path / "config.toml")])
        assert result.exit_code == 1
