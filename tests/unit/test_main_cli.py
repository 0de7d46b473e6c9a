"""Unit tests for the task_relay.main CLI module."""

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from task_relay.main import cli


@pytest.fixture(autouse=True)
def keep_logging_configuration():
    """Keep the CLI from reconfiguring structlog for the rest of the session."""
    with patch("task_relay.main.configure_logging") as mock_configure:
        yield mock_configure


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def file_config(tmp_path: Path) -> Path:
    """Configuration selecting the file backend in a temp directory."""
    config = tmp_path / "relay.yaml"
    config.write_text(
        "store:\n"
        "  backend: file\n"
        f"  state_directory: {tmp_path / 'tasks'}\n"
        "retry:\n"
        "  attempts: 2\n"
        "  base_delay: 0\n"
        "log_level: ERROR\n"
    )
    return config


class TestCliGroup:
    """Tests for global options."""

    def test_help(self, cli_runner: CliRunner):
        result = cli_runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "demo" in result.output
        assert "set-status" in result.output

    def test_log_level_overrides_configuration(
        self, cli_runner: CliRunner, file_config: Path, keep_logging_configuration
    ):
        result = cli_runner.invoke(cli, ["--config", str(file_config), "--log-level", "DEBUG", "show", "taskA"])

        assert result.exit_code == 1
        keep_logging_configuration.assert_called_once_with("DEBUG")

    def test_configured_log_level_used_by_default(
        self, cli_runner: CliRunner, file_config: Path, keep_logging_configuration
    ):
        cli_runner.invoke(cli, ["--config", str(file_config), "show", "taskA"])

        keep_logging_configuration.assert_called_once_with("ERROR")

    def test_missing_config_file(self, cli_runner: CliRunner, tmp_path: Path):
        result = cli_runner.invoke(cli, ["--config", str(tmp_path / "nope.yaml"), "demo"])

        assert result.exit_code == 1
        assert "Configuration file not found" in result.output

    def test_invalid_config_file(self, cli_runner: CliRunner, tmp_path: Path):
        config = tmp_path / "bad.yaml"
        config.write_text("retry:\n  attempts: 0\n")

        result = cli_runner.invoke(cli, ["--config", str(config), "demo"])

        assert result.exit_code == 1
        assert "Error:" in result.output


class TestDemoCommand:
    """Tests for the demo command."""

    def test_demo_runs_example_graph(self, cli_runner: CliRunner):
        result = cli_runner.invoke(cli, ["--log-level", "ERROR", "demo"])

        assert result.exit_code == 0, result.output
        lines = [line for line in result.output.splitlines() if line.startswith("task")]
        records = {line.split(": ", 1)[0]: json.loads(line.split(": ", 1)[1]) for line in lines}
        assert set(records) == {"taskA", "taskB", "taskC", "taskD", "taskE"}
        assert all(record["status"] == "fulfilled" for record in records.values())
        assert records["taskA"]["output"] == "TaskA completed"


class TestShowAndSetStatus:
    """Tests for show and set-status against the file backend."""

    def test_show_missing_record(self, cli_runner: CliRunner, file_config: Path):
        result = cli_runner.invoke(cli, ["--config", str(file_config), "show", "taskA"])

        assert result.exit_code == 1
        assert "No record for task: taskA" in result.output

    def test_set_status_then_show(self, cli_runner: CliRunner, file_config: Path):
        result = cli_runner.invoke(
            cli, ["--config", str(file_config), "set-status", "taskA", "rejected", "--error", "stopped by operator"]
        )
        assert result.exit_code == 0, result.output
        assert "taskA: rejected" in result.output

        result = cli_runner.invoke(cli, ["--config", str(file_config), "show", "taskA"])

        assert result.exit_code == 0, result.output
        record = json.loads(result.output)
        assert record["status"] == "rejected"
        assert record["error"] == "stopped by operator"
        assert "updated_at" in record

    def test_set_status_rejects_unknown_status(self, cli_runner: CliRunner, file_config: Path):
        result = cli_runner.invoke(cli, ["--config", str(file_config), "set-status", "taskA", "done"])

        assert result.exit_code == 2

    def test_error_only_allowed_with_rejected(self, cli_runner: CliRunner, file_config: Path):
        result = cli_runner.invoke(
            cli, ["--config", str(file_config), "set-status", "taskA", "fulfilled", "--error", "x"]
        )

        assert result.exit_code == 2
        assert "--error can only be given with status 'rejected'" in result.output
        assert not (file_config.parent / "tasks" / "taskA.json").exists()

    def test_requeue_drops_error_and_output(self, cli_runner: CliRunner, file_config: Path):
        config = ["--config", str(file_config)]
        cli_runner.invoke(cli, [*config, "set-status", "taskA", "rejected", "--error", "boom"])

        result = cli_runner.invoke(cli, [*config, "set-status", "taskA", "queued"])
        assert result.exit_code == 0, result.output

        record = json.loads(cli_runner.invoke(cli, [*config, "show", "taskA"]).output)
        assert record["status"] == "queued"
        assert "error" not in record
        assert "output" not in record


class TestStoreLifecycle:
    """Every command releases the store it opened."""

    @pytest.mark.parametrize(
        "args",
        [
            ["demo"],
            ["show", "taskA"],
            ["set-status", "taskA", "queued"],
        ],
    )
    def test_store_closed(self, cli_runner: CliRunner, args: list[str]):
        with patch("task_relay.store.memory.InMemoryTaskStore.close", new_callable=AsyncMock) as mock_close:
            cli_runner.invoke(cli, args)

        mock_close.assert_awaited_once()
