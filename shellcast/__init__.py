"""shellcast: stream and record the output of shell commands."""

from importlib import metadata

try:
    __version__ = metadata.version("shellcast")
except metadata.PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

__all__ = ["__version__"]
