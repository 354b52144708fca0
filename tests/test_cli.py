import logging
from unittest import mock

import pytest
from rich.logging import RichHandler

import roadtrip.cli as cli
from roadtrip.cache import CacheStore, Stage
from roadtrip.config import CacheConfig
from roadtrip.pipeline import RunReport


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    path = tmp_path / "roadtrip.yaml"
    path.write_text(f"paths:\n  cache_dir: {tmp_path / 'cache'}\n  output_dir: {tmp_path / 'out'}\n")
    monkeypatch.setenv("ROADTRIP_CONFIG", str(path))
    return tmp_path


def test_reset_command(config_file):
    store = CacheStore(CacheConfig(root=config_file / "cache"))
    for stage in Stage:
        store.put("wingstop", stage, b"{}")

    assert cli.main(["reset", "wingstop", "--from", "route"]) == 0
    assert store.exists("wingstop", Stage.POINTS)
    assert not store.exists("wingstop", Stage.ROUTE)


def test_run_command_reports_failures(config_file, monkeypatch):
    fake = mock.MagicMock()
    fake.run_all.return_value = RunReport(failed={"wingstop": "RuntimeError: boom"})
    monkeypatch.setattr(cli, "build_controller", mock.MagicMock(return_value=fake))

    assert cli.main(["run", "--workers", "2"]) == 1
    subjects, = fake.run_all.call_args.args
    assert fake.run_all.call_args.kwargs == {"max_workers": 2}
    assert len(subjects) == len(cli.DEFAULT_SUBJECTS)


def test_leaderboards_without_cache(config_file):
    assert cli.main(["leaderboards"]) == 1


def test_invalid_config_is_rejected(tmp_path, monkeypatch):
    path = tmp_path / "bad.yaml"
    path.write_text("planner:\n  backend_limit: 0\n")
    monkeypatch.setenv("ROADTRIP_CONFIG", str(path))
    assert cli.main(["run"]) == 2


def test_log_level_comes_from_environment(config_file, monkeypatch):
    monkeypatch.setenv("ROADTRIP_LOG_LEVEL", "DEBUG")
    assert cli.main(["reset", "wingstop"]) == 0
    assert logging.getLogger("roadtrip").getEffectiveLevel() == logging.DEBUG


def test_log_level_flag_beats_environment(config_file, monkeypatch):
    monkeypatch.setenv("ROADTRIP_LOG_LEVEL", "DEBUG")
    assert cli.main(["--log-level", "warning", "reset", "wingstop"]) == 0
    assert logging.getLogger("roadtrip").getEffectiveLevel() == logging.WARNING


def test_plain_handler_when_rich_is_off(tmp_path, monkeypatch):
    path = tmp_path / "roadtrip.yaml"
    path.write_text(f"paths:\n  cache_dir: {tmp_path / 'cache'}\nlogging:\n  rich: false\n")
    monkeypatch.setenv("ROADTRIP_CONFIG", str(path))
    assert cli.main(["reset", "wingstop"]) == 0
    assert not any(isinstance(h, RichHandler) for h in logging.getLogger().handlers)
