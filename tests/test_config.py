import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from shellcast import config
from shellcast.config import (
    ShellCastSettings,
    load_config,
    parse_screen_size,
    read_settings,
    save_config,
)
from shellcast.errors import ConfigError, UnknownThemeError


@pytest.fixture(autouse=True)
def _no_default_files(monkeypatch):
    monkeypatch.setattr(config, "DEFAULT_CONFIG_FILES", [])


def test_defaults():
    settings = ShellCastSettings()
    assert settings.ffmpeg_path == "ffmpeg"
    assert settings.screen_size == "1280x720"
    assert settings.timestamp_format == "%Y-%m-%d %H:%M:%S"
    assert settings.output_file is None
    assert not settings.timestamp_policy.enabled


def test_parse_screen_size_falls_back_to_default():
    assert parse_screen_size("800x600") == (800, 600)
    assert parse_screen_size("1920X1080") == (1920, 1080)
    assert parse_screen_size("huge") == (1280, 720)
    assert parse_screen_size("0x600") == (1280, 720)


def test_invalid_dimensions_are_corrected():
    settings = ShellCastSettings(screen_width="wide", screen_height=-5)
    assert (settings.screen_width, settings.screen_height) == (1280, 720)

    settings.screen_width = 0
    assert settings.screen_width == 1280


def test_timestamp_format_assignment_is_validated():
    settings = ShellCastSettings()
    settings.timestamp_format = "15:04:05"
    assert settings.timestamp_format == "%H:%M:%S"

    with pytest.raises(ValidationError):
        settings.timestamp_format = ""


def test_apply_theme():
    settings = ShellCastSettings()
    settings.apply_theme("hacker")
    assert settings.theme_name == "hacker"
    assert settings.font_color == "lime"
    assert settings.background_color == "black"

    with pytest.raises(UnknownThemeError):
        settings.apply_theme("neon")
    assert settings.theme_name == "hacker"


def test_load_config_reads_legacy_json(tmp_path: Path):
    path = tmp_path / "shellcast_config.json"
    path.write_text(
        json.dumps(
            {
                "rtmp_url": "rtmp://live.example/app",
                "ffmpeg_path": "ffmpeg",
                "font_size": 30,
                "output_file": "",
                "timestamp_format": "2006-01-02 15:04:05",
                "screen_width": 0,
                "screen_height": 480,
                "split_commands": None,
                "theme_name": "monokai",
            }
        )
    )

    result = load_config(path)

    assert result.source == path
    settings = result.settings
    assert settings.rtmp_url == "rtmp://live.example/app"
    assert settings.font_size == 30
    assert settings.output_file is None
    assert settings.timestamp_format == "%Y-%m-%d %H:%M:%S"
    assert (settings.screen_width, settings.screen_height) == (1280, 480)
    assert settings.split_commands == []


def test_load_config_reads_toml(tmp_path: Path):
    path = tmp_path / "shellcast.toml"
    path.write_text('rtmp_url = "rtmp://a/b"\nshow_timestamp = true\nsplit_commands = ["ls", "uptime"]\n')

    settings = load_config(path).settings

    assert settings.show_timestamp
    assert settings.split_commands == ["ls", "uptime"]


def test_load_config_without_file_uses_defaults(tmp_path: Path):
    result = load_config(tmp_path / "missing.json")
    assert result.source is None
    assert result.settings == ShellCastSettings()


def test_load_config_rejects_broken_file(tmp_path: Path):
    path = tmp_path / "broken.json"
    path.write_text("{not json")
    with pytest.raises(ConfigError):
        load_config(path)


def test_save_then_read_settings(tmp_path: Path):
    settings = ShellCastSettings(rtmp_url="rtmp://x/y", font_size=18)
    settings.apply_theme("solarized")

    saved = save_config(settings, tmp_path / "nested" / "config.json")
    loaded = read_settings(saved)

    assert loaded.rtmp_url == "rtmp://x/y"
    assert loaded.font_size == 18
    assert loaded.background_color == "#002b36"


def test_read_settings_missing_file(tmp_path: Path):
    with pytest.raises(ConfigError):
        read_settings(tmp_path / "nope.json")


def test_save_config_refuses_toml(tmp_path: Path):
    with pytest.raises(ConfigError):
        save_config(ShellCastSettings(), tmp_path / "config.toml")
