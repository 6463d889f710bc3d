import logging
from pathlib import Path

from ruang_hampa.presentation.cli import config


def test_debug_disabled_by_default(monkeypatch) -> None:
    monkeypatch.delenv("RUANG_HAMPA_DEBUG", raising=False)
    assert config.debug_enabled() is False


def test_debug_enabled_only_for_one(monkeypatch) -> None:
    monkeypatch.setenv("RUANG_HAMPA_DEBUG", "true")
    assert config.debug_enabled() is False
    monkeypatch.setenv("RUANG_HAMPA_DEBUG", "1")
    assert config.debug_enabled() is True


def test_home_override_controls_save_and_log_paths(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("RUANG_HAMPA_HOME", str(tmp_path))

    assert config.get_user_data_dir() == tmp_path
    assert config.get_save_dir() == tmp_path / "saves"
    assert config.get_log_path() == tmp_path / "ruang_hampa.log"


def test_configure_logging_targets_log_file(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.delenv("RUANG_HAMPA_DEBUG", raising=False)
    captured: dict = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: captured.update(kwargs))
    log_path = tmp_path / "logs" / "game.log"

    config.configure_logging(log_path)

    handlers = captured["handlers"]
    try:
        assert captured["level"] == logging.INFO
        assert captured["force"] is True
        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.FileHandler)
        assert Path(handlers[0].baseFilename) == log_path
    finally:
        for handler in handlers:
            handler.close()


def test_configure_logging_echoes_warnings_in_debug(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("RUANG_HAMPA_DEBUG", "1")
    captured: dict = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: captured.update(kwargs))

    config.configure_logging(tmp_path / "game.log")

    handlers = captured["handlers"]
    try:
        assert captured["level"] == logging.DEBUG
        stream_handlers = [h for h in handlers if type(h) is logging.StreamHandler]
        assert len(stream_handlers) == 1
        assert stream_handlers[0].level == logging.WARNING
    finally:
        for handler in handlers:
            handler.close()
