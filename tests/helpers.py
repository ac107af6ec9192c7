import io
import sys

from rich.console import Console


def make_console() -> Console:
    return Console(file=io.StringIO(), width=200, color_system=None, force_terminal=False)


def console_text(console: Console) -> str:
    return console.file.getvalue()


def py(code: str) -> list:
    return [sys.executable, "-c", code]
