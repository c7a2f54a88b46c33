"""
Tests for the TripNav command line interface
"""

import json

import pytest
import yaml
from typer.testing import CliRunner

from tripnav.cli.app import app

runner = CliRunner()


@pytest.fixture
def config_env(tmp_path):
    """Point the config manager at an empty temporary directory"""
    config_dir = tmp_path / "config"
    return {"TRIPNAV_CONFIG_DIR": str(config_dir)}


@pytest.fixture
def trip_file(tmp_path):
    path = tmp_path / "paris.yaml"
    path.write_text(yaml.dump({
        "origin": {"lat": 48.8566, "lon": 2.3522, "address": "Hôtel de Ville"},
        "mode": "walking",
        "departure_time": "2024-06-01T09:00:00",
        "stops": [
            {"id": "cafe", "name": "Cafe de Flore", "lat": 48.8540, "lon": 2.3325, "category": "cafe"},
            {"id": "louvre", "name": "Louvre", "lat": 48.8606, "lon": 2.3376, "category": "museum"},
        ],
    }), encoding="utf-8")
    return path


@pytest.fixture
def trace_file(tmp_path):
    path = tmp_path / "walk.json"
    path.write_text(json.dumps({"trace": [
        {"elapsed": 0, "location": {"lat": 48.8566, "lon": 2.3522, "accuracy": 5}},
        {"elapsed": 60, "location": {"lat": 48.8606, "lon": 2.3376, "accuracy": 5}},
        {"elapsed": 90, "location": None},
        {"elapsed": 120, "location": {"lat": 48.8540, "lon": 2.3325, "accuracy": 5}},
    ]}))
    return path


class TestPlanCommand:
    """Test the plan command"""

    def test_plan(self, trip_file, config_env):
        """Test stops are listed nearest-first"""
        result = runner.invoke(app, ["plan", str(trip_file)], env=config_env)

        assert result.exit_code == 0
        assert "Louvre" in result.stdout
        assert result.stdout.index("Louvre") < result.stdout.index("Cafe de Flore")
        assert "Total distance" in result.stdout

    def test_plan_with_budget(self, trip_file, config_env):
        """Test a tight budget keeps only the stops that fit"""
        result = runner.invoke(app, ["plan", str(trip_file), "--budget", "60"], env=config_env)

        assert result.exit_code == 0
        assert "Cafe de Flore" in result.stdout
        assert "Louvre" not in result.stdout
        assert "1 stop(s) left out" in result.stdout

    def test_plan_negative_budget(self, trip_file, config_env):
        result = runner.invoke(app, ["plan", str(trip_file), "--budget", "-5"], env=config_env)
        assert result.exit_code != 0

    def test_plan_invalid_trip(self, tmp_path, config_env):
        path = tmp_path / "broken.yaml"
        path.write_text("stops: []")

        result = runner.invoke(app, ["plan", str(path)], env=config_env)

        assert result.exit_code == 1
        assert "Invalid trip file" in result.stdout

    def test_plan_missing_config(self, trip_file, tmp_path, config_env):
        result = runner.invoke(
            app, ["plan", str(trip_file), "--config", str(tmp_path / "nope.yaml")], env=config_env
        )
        assert result.exit_code == 1
        assert "not found" in result.stdout


class TestPreviewCommand:
    """Test the preview command"""

    def test_preview_offline(self, trip_file, config_env):
        result = runner.invoke(app, ["preview", str(trip_file), "--offline"], env=config_env)

        assert result.exit_code == 0
        assert "Route preview" in result.stdout
        assert "Total" in result.stdout
        assert "Legs without directions" not in result.stdout


class TestSimulateCommand:
    """Test the simulate command"""

    def test_simulate_offline(self, trip_file, trace_file, config_env):
        """Test replaying a trace that visits every stop"""
        result = runner.invoke(app, ["simulate", str(trip_file), str(trace_file), "--offline"], env=config_env)

        assert result.exit_code == 0
        assert "All stops visited" in result.stdout

    def test_simulate_french(self, trip_file, trace_file, config_env):
        result = runner.invoke(
            app,
            ["simulate", str(trip_file), str(trace_file), "--offline", "--locale", "fr"],
            env=config_env,
        )
        assert result.exit_code == 0
        assert "Vous êtes arrivé à destination" in result.stdout

    def test_simulate_bad_locale(self, trip_file, trace_file, config_env):
        result = runner.invoke(
            app,
            ["simulate", str(trip_file), str(trace_file), "--offline", "--locale", "xx"],
            env=config_env,
        )
        assert result.exit_code == 1

    def test_simulate_missing_trace(self, trip_file, tmp_path, config_env):
        result = runner.invoke(
            app, ["simulate", str(trip_file), str(tmp_path / "none.json"), "--offline"], env=config_env
        )
        assert result.exit_code == 1
        assert "Trace file not found" in result.stdout


class TestConfigCommands:
    """Test configuration commands"""

    def test_init_and_show_config(self, config_env):
        result = runner.invoke(app, ["init-config"], env=config_env)
        assert result.exit_code == 0
        assert "Configuration written" in result.stdout

        result = runner.invoke(app, ["init-config"], env=config_env)
        assert result.exit_code == 1

        result = runner.invoke(app, ["show-config"], env=config_env)
        assert result.exit_code == 0
        assert "arrival_threshold_m" in result.stdout
