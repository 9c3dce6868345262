"""Tests for settings resolution."""

from pathlib import Path

from core import config


def test_env_data_dir_wins_over_default(tmp_path, monkeypatch):
    monkeypatch.setenv(config.ENV_DATA_DIR, str(tmp_path / "store"))
    assert config.resolve_data_dir() == (tmp_path / "store").resolve()


def test_session_value_wins_over_env(tmp_path, monkeypatch):
    monkeypatch.setenv(config.ENV_DATA_DIR, str(tmp_path / "env"))
    assert config.resolve_data_dir(str(tmp_path / "session")) == (tmp_path / "session").resolve()


def test_persisted_pointer_in_default_dir(tmp_path, monkeypatch):
    monkeypatch.delenv(config.ENV_DATA_DIR, raising=False)
    monkeypatch.setattr(config, "_default_data_dir", lambda: tmp_path)
    (tmp_path / config.CONFIG_FILE_NAME).write_text('{"data_dir": "%s"}' % (tmp_path / "moved").as_posix())

    assert config.resolve_data_dir() == (tmp_path / "moved").resolve()


def test_build_settings_reads_env(tmp_path, monkeypatch):
    monkeypatch.setenv(config.ENV_LOG_LEVEL, "debug")
    monkeypatch.setenv(config.ENV_LOG_JSON, "true")
    monkeypatch.setenv(config.ENV_LOW_STOCK_THRESHOLD, "5")

    s = config.build_settings(tmp_path / "data")

    assert s.db_path == tmp_path / "data" / config.DB_FILE_NAME
    assert Path(s.data_dir).is_dir()
    assert (s.log_level, s.log_json, s.low_stock_threshold) == ("DEBUG", True, 5)


def test_bad_threshold_falls_back(tmp_path, monkeypatch):
    monkeypatch.setenv(config.ENV_LOW_STOCK_THRESHOLD, "lots")
    assert config.build_settings(tmp_path).low_stock_threshold == 10
