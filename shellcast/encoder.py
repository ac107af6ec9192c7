"""Argument template for the external video encoder (ffmpeg)."""
from __future__ import annotations

from pathlib import Path
from typing import List

from .config import ShellCastSettings


def _drawtext(settings: ShellCastSettings, position: str, text: str) -> str:
    return (
        f"drawtext=fontfile={settings.font_file}"
        f":fontcolor={settings.font_color}"
        f":fontsize={settings.font_size}"
        f":box=1:boxcolor={settings.background_color}"
        f":{position}:text='{text}'"
    )


def build_video_filter(settings: ShellCastSettings) -> str:
    # Frame counter in the top-left, wall-clock overlay in the top-right.
    video_filter = _drawtext(settings, "x=20:y=20", r"%{eif\:n\:d}")
    if settings.show_timestamp:
        video_filter += "," + _drawtext(settings, "x=w-200:y=20", "%{localtime}")
    return video_filter


def build_encoder_command(settings: ShellCastSettings, capture_path: Path) -> List[str]:
    if not settings.rtmp_url:
        raise ValueError("no streaming destination configured")
    return [
        settings.ffmpeg_path or "ffmpeg",
        "-re",
        "-f", "concat",
        "-safe", "0",
        "-i", str(capture_path),
        "-vf", build_video_filter(settings),
        "-c:v", "libx264",
        "-preset", "ultrafast",
        "-s", settings.screen_size,
        "-f", "flv",
        settings.rtmp_url,
    ]


__all__ = ["build_encoder_command", "build_video_filter"]
