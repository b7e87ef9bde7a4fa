"""Integration tests for CLI commands."""

import os
from pathlib import Path

import httpx
import pytest
import yaml
from typer.testing import CliRunner

from showtape.cli import app
from showtape.pipeline import PipelineOrchestrator

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path: Path, sample_config_dict: dict) -> Path:
    path = tmp_path / "config.yaml"
    with open(path, "w") as f:
        yaml.safe_dump(sample_config_dict, f)
    return path


class TestCLIVersion:
    """Tests for version command."""

    def test_version_command(self) -> None:
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert "showtape" in result.stdout
        assert "0.1.0" in result.stdout


class TestCLIConfig:
    """Tests for config command."""

    def test_init_and_show(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"

        init = runner.invoke(app, ["config", "init", "--config", str(path)])
        show = runner.invoke(app, ["config", "show", "--config", str(path)])

        assert init.exit_code == 0
        assert path.exists()
        assert show.exit_code == 0
        assert "Morning Show" in show.stdout

    def test_init_twice_fails(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        runner.invoke(app, ["config", "init", "--config", str(path)])

        result = runner.invoke(app, ["config", "init", "--config", str(path)])

        assert result.exit_code == 1
        assert "already exists" in result.stdout

    def test_unknown_action(self, config_file: Path) -> None:
        result = runner.invoke(app, ["config", "edit", "--config", str(config_file)])

        assert result.exit_code == 1
        assert "Unknown action" in result.stdout


class TestCLIRecord:
    """Tests for record command."""

    def test_invalid_config_exits_1(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setenv("SHOWTAPE_CONFIG_DIR", str(tmp_path))

        result = runner.invoke(app, ["record", "--series", "Morning Show"])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.stdout

    def test_record_runs_pipeline(self, config_file: Path, instant_fetcher, monkeypatch) -> None:
        events = []

        def handler(request: httpx.Request) -> httpx.Response:
            events.append(request)
            return httpx.Response(200)

        original = PipelineOrchestrator.from_config

        def from_config(config):
            return original(
                config,
                fetcher=instant_fetcher,
                http_client=httpx.Client(transport=httpx.MockTransport(handler)),
                sleep=lambda seconds: None,
            )

        monkeypatch.setattr(PipelineOrchestrator, "from_config", staticmethod(from_config))

        result = runner.invoke(
            app, ["record", "--config", str(config_file), "--runtime", "1", "--keep", "3"]
        )

        assert result.exit_code == 0, result.stdout
        assert "Recording complete" in result.stdout
        assert len(events) == 2
        assert instant_fetcher.calls

    def test_record_reports_failed_stage(self, config_file: Path, instant_fetcher, monkeypatch) -> None:
        original = PipelineOrchestrator.from_config

        def from_config(config):
            return original(
                config,
                fetcher=instant_fetcher,
                http_client=httpx.Client(
                    transport=httpx.MockTransport(lambda request: httpx.Response(500))
                ),
                sleep=lambda seconds: None,
            )

        monkeypatch.setattr(PipelineOrchestrator, "from_config", staticmethod(from_config))

        result = runner.invoke(app, ["record", "--config", str(config_file)])

        assert result.exit_code == 1
        assert "notify_start" in result.stdout


class TestCLIPrune:
    """Tests for prune command."""

    @pytest.fixture
    def stored_episodes(self, sample_config_dict: dict) -> Path:
        container = Path(sample_config_dict["storage"]["root"]) / "radio-account" / "morning-show"
        container.mkdir(parents=True)
        for day in range(1, 4):
            path = container / f"morning_show_2025110{day}060000.mp3"
            path.write_bytes(b"x")
            stamp = 1_700_000_000 + day * 86400
            os.utime(path, (stamp, stamp))
        return container

    def test_dry_run_keeps_everything(self, config_file: Path, stored_episodes: Path) -> None:
        result = runner.invoke(
            app, ["prune", "--config", str(config_file), "--keep", "1", "--dry-run"]
        )

        assert result.exit_code == 0
        assert "Would remove 2" in result.stdout
        assert len(list(stored_episodes.iterdir())) == 3

    def test_prune_deletes_oldest(self, config_file: Path, stored_episodes: Path) -> None:
        result = runner.invoke(app, ["prune", "--config", str(config_file), "--keep", "1"])

        assert result.exit_code == 0
        assert "Removed 2" in result.stdout
        assert [p.name for p in stored_episodes.iterdir()] == ["morning_show_20251103060000.mp3"]

    def test_prune_spares_other_series(self, config_file: Path, stored_episodes: Path) -> None:
        other = stored_episodes / "morning_show_extra_20251101060000.mp3"
        other.write_bytes(b"x")
        os.utime(other, (1_600_000_000, 1_600_000_000))

        result = runner.invoke(app, ["prune", "--config", str(config_file), "--keep", "1"])

        assert result.exit_code == 0
        assert "Removed 2" in result.stdout
        assert other.exists()

    def test_nothing_to_prune(self, config_file: Path) -> None:
        result = runner.invoke(app, ["prune", "--config", str(config_file)])

        assert result.exit_code == 0
        assert "Nothing to remove" in result.stdout
