"""Color presets for the streamed terminal view."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

from .errors import UnknownThemeError


@dataclass(frozen=True)
class ThemePreset:
    key: str
    name: str
    font_color: str
    background_color: str
    border_color: str
    highlight_color: str


THEME_PRESETS: Dict[str, ThemePreset] = {
    preset.key: preset
    for preset in (
        ThemePreset("default", "Default", "white", "black", "gray", "blue"),
        ThemePreset("hacker", "Hacker", "lime", "black", "green", "red"),
        ThemePreset("solarized", "Solarized", "#839496", "#002b36", "#586e75", "#268bd2"),
        ThemePreset("light", "Light", "#222222", "#f9f9f9", "#dddddd", "#0066cc"),
        ThemePreset("monokai", "Monokai", "#f8f8f2", "#272822", "#75715e", "#f92672"),
    )
}


def get_theme(name: str) -> ThemePreset:
    try:
        return THEME_PRESETS[name]
    except KeyError:
        raise UnknownThemeError(f"theme '{name}' not found") from None


def list_themes() -> List[ThemePreset]:
    return [THEME_PRESETS[key] for key in sorted(THEME_PRESETS)]


__all__ = ["THEME_PRESETS", "ThemePreset", "get_theme", "list_themes"]
