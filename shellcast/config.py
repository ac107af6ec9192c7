"""Runtime configuration helpers for shellcast."""
from __future__ import annotations

import json
import logging
import re
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

from .errors import ConfigError
from .formatter import DEFAULT_TIME_FORMAT, TimestampPolicy, normalize_time_format
from .themes import get_theme

logger = logging.getLogger(__name__)

DEFAULT_SCREEN_SIZE = (1280, 720)
DEFAULT_FONT_FILE = "/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf"
DEFAULT_SAVE_PATH = Path("shellcast_config.json")

DEFAULT_CONFIG_FILES = [
    Path.cwd() / ".shellcast.toml",
    Path.cwd() / "shellcast_config.json",
    Path.home() / ".config" / "shellcast" / "config.toml",
]

_SCREEN_SIZE_PATTERN = re.compile(r"^\s*(\d+)\s*[xX]\s*(\d+)\s*$")


class ShellCastSettings(BaseModel):
    model_config = ConfigDict(validate_assignment=True, extra="ignore")

    rtmp_url: Optional[str] = Field(default=None, description="Streaming destination (RTMP URL)")
    ffmpeg_path: str = Field(default="ffmpeg", description="Encoder executable")
    font_size: int = Field(default=24, gt=0, description="Font size of the streamed text")
    font_color: str = Field(default="white")
    background_color: str = Field(default="black")
    font_file: str = Field(default=DEFAULT_FONT_FILE, description="Font used by the encoder overlay")
    output_file: Optional[Path] = Field(default=None, description="Caller-owned capture file for streaming")
    show_timestamp: bool = Field(default=False, description="Prefix each line with a timestamp")
    timestamp_format: str = Field(default=DEFAULT_TIME_FORMAT, description="strftime format (Go layouts accepted)")
    screen_width: int = Field(default=DEFAULT_SCREEN_SIZE[0])
    screen_height: int = Field(default=DEFAULT_SCREEN_SIZE[1])
    record_session: bool = Field(default=False)
    record_path: Path = Field(default_factory=lambda: Path("recordings"), description="Directory for recordings")
    split_commands: List[str] = Field(default_factory=list)
    theme_name: str = Field(default="default")

    @field_validator("rtmp_url", "output_file", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("split_commands", mode="before")
    @classmethod
    def _null_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("output_file", "record_path")
    @classmethod
    def _expand_path(cls, value: Optional[Path]) -> Optional[Path]:
        return value.expanduser() if value is not None else None

    @field_validator("timestamp_format")
    @classmethod
    def _check_time_format(cls, value: str) -> str:
        return normalize_time_format(value)

    @field_validator("screen_width", "screen_height", mode="before")
    @classmethod
    def _safe_dimension(cls, value: Any, info: ValidationInfo) -> int:
        default = DEFAULT_SCREEN_SIZE[0] if info.field_name == "screen_width" else DEFAULT_SCREEN_SIZE[1]
        try:
            number = int(value)
        except (TypeError, ValueError):
            logger.warning("Invalid %s %r, using %d", info.field_name, value, default)
            return default
        if number <= 0:
            logger.warning("Invalid %s %r, using %d", info.field_name, value, default)
            return default
        return number

    @property
    def timestamp_policy(self) -> TimestampPolicy:
        return TimestampPolicy(enabled=self.show_timestamp, fmt=self.timestamp_format)

    @property
    def screen_size(self) -> str:
        return f"{self.screen_width}x{self.screen_height}"

    def apply_theme(self, name: str) -> None:
        theme = get_theme(name)
        self.theme_name = name
        self.font_color = theme.font_color
        self.background_color = theme.background_color

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


@dataclass
class ConfigLoadResult:
    settings: ShellCastSettings
    source: Optional[Path]
    searched: List[Path]


def match_screen_size(text: str) -> Optional[Tuple[int, int]]:
    match = _SCREEN_SIZE_PATTERN.match(text or "")
    if not match:
        return None
    width, height = int(match.group(1)), int(match.group(2))
    if width <= 0 or height <= 0:
        return None
    return width, height


def parse_screen_size(text: str) -> Tuple[int, int]:
    """Parse ``WIDTHxHEIGHT``; malformed or non-positive input yields the default."""
    size = match_screen_size(text)
    if size is not None:
        return size
    logger.warning("Invalid screen size %r, using %dx%d", text, *DEFAULT_SCREEN_SIZE)
    return DEFAULT_SCREEN_SIZE


def _read_file(path: Path) -> Any:
    try:
        if path.suffix == ".toml":
            with path.open("rb") as fh:
                return tomllib.load(fh)
        return json.loads(path.read_text(encoding="utf-8") or "{}")
    except (OSError, tomllib.TOMLDecodeError, json.JSONDecodeError) as exc:
        raise ConfigError(f"error reading config file {path}: {exc}") from exc


def load_config(explicit_path: Optional[Path] = None) -> ConfigLoadResult:
    """Load configuration from the first available location."""
    candidates: List[Path] = []
    if explicit_path is not None:
        candidates.append(explicit_path.expanduser())
    candidates.extend(DEFAULT_CONFIG_FILES)

    config_data: Any = {}
    loaded_from: Optional[Path] = None
    for candidate in candidates:
        if candidate.is_file():
            config_data = _read_file(candidate)
            loaded_from = candidate
            break

    return ConfigLoadResult(settings=_build_settings(config_data, loaded_from), source=loaded_from, searched=candidates)


def read_settings(path: Path) -> ShellCastSettings:
    """Read one specific config file; a missing file is an error here."""
    path = path.expanduser()
    if not path.is_file():
        raise ConfigError(f"config file not found: {path}")
    return _build_settings(_read_file(path), path)


def _build_settings(data: Any, source: Optional[Path]) -> ShellCastSettings:
    if not isinstance(data, dict):
        raise ConfigError(f"invalid configuration in {source}: expected a mapping")
    try:
        return ShellCastSettings(**data)
    except ValidationError as exc:
        raise ConfigError(f"invalid configuration in {source}: {exc}") from exc


def save_config(settings: ShellCastSettings, path: Path) -> Path:
    path = path.expanduser()
    if path.suffix == ".toml":
        raise ConfigError("configuration can only be saved as JSON")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(settings.model_dump_json(indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"error writing config file {path}: {exc}") from exc
    return path


__all__ = [
    "ConfigLoadResult",
    "DEFAULT_SAVE_PATH",
    "ShellCastSettings",
    "load_config",
    "match_screen_size",
    "parse_screen_size",
    "read_settings",
    "save_config",
]
