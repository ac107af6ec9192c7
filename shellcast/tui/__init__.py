"""Interactive front-end for shellcast sessions."""

from .repl import ShellCastRepl

__all__ = ["ShellCastRepl"]
