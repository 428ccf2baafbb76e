"""Tests for the command-line interface."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from cache_warmer import cli
from cache_warmer.exceptions import FatalStartupError


@pytest.fixture
def isolated(monkeypatch, tmp_path):
    """Keep main() away from real logging, env config and browsers."""
    for name in ("WARMER_SITES", "WARMER_BATCH_SIZE", "WARMER_EXECUTION_MODE",
                 "WARMER_LOG_LEVEL", "WARMER_LOG_DIR", "WARMER_MAX_CONCURRENCY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("WARMER_LOCK_FILE", str(tmp_path / "cli.lock"))

    setup = MagicMock(return_value=None)
    monkeypatch.setattr(cli, "setup_logging", setup)

    coordinator = MagicMock()
    coordinator.return_value.run = AsyncMock(return_value=None)
    monkeypatch.setattr(cli, "RunCoordinator", coordinator)
    return setup, coordinator


class TestLoadConfig:
    """Test cases for load_config()."""

    def test_overrides_apply(self, isolated):
        args = cli.build_parser().parse_args(
            ["https://a.test", "--mode", "pool", "--concurrency", "5", "--batch-size", "10", "--max-urls", "20"]
        )
        config = cli.load_config(args)

        assert config.sites == ["https://a.test"]
        assert config.execution_mode == "pool"
        assert config.max_concurrency == 5
        assert config.batch_size == 10
        assert config.max_urls_per_site == 20

    def test_config_file(self, isolated, tmp_path):
        path = tmp_path / "warmer.json"
        path.write_text(json.dumps({"sites": ["https://file.test"], "batch_size": 7}))

        config = cli.load_config(cli.build_parser().parse_args(["-c", str(path)]))

        assert config.sites == ["https://file.test"]
        assert config.batch_size == 7


class TestMain:
    """Test cases for main()."""

    def test_runs_coordinator(self, isolated, tmp_path):
        setup, coordinator = isolated

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["https://a.test", "--log-dir", str(tmp_path / "logs")])

        assert exc_info.value.code == 0
        setup.assert_called_once_with(level="INFO", log_dir=str(tmp_path / "logs"))
        config = coordinator.call_args.args[0]
        assert config.sites == ["https://a.test"]
        coordinator.return_value.run.assert_awaited_once()

    def test_no_sites_is_noop(self, isolated):
        _, coordinator = isolated

        with pytest.raises(SystemExit) as exc_info:
            cli.main([])

        assert exc_info.value.code == 0
        coordinator.assert_not_called()

    def test_invalid_override_exits_1(self, isolated, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["https://a.test", "--batch-size", "0"])

        assert exc_info.value.code == 1
        assert "Invalid configuration" in capsys.readouterr().err

    def test_fatal_startup_exits_1(self, isolated, capsys):
        setup, coordinator = isolated
        setup.side_effect = FatalStartupError("Cannot initialize log file")

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["https://a.test"])

        assert exc_info.value.code == 1
        assert "Cannot initialize log file" in capsys.readouterr().err
        coordinator.assert_not_called()

    def test_lock_failure_exits_1(self, isolated):
        _, coordinator = isolated
        coordinator.return_value.run = AsyncMock(side_effect=FatalStartupError("Cannot create lock file"))

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["https://a.test"])

        assert exc_info.value.code == 1

    def test_print_config(self, isolated, capsys):
        _, coordinator = isolated

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["https://a.test", "--batch-size", "9", "--print-config"])

        assert exc_info.value.code == 0
        printed = json.loads(capsys.readouterr().out)
        assert printed["batch_size"] == 9
        assert printed["sites"] == ["https://a.test"]
        coordinator.assert_not_called()
