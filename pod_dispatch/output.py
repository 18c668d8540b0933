"""UX output primitives and the deferred warning queue.

All human output goes through Rich Console. One ``Output`` is built per
invocation; whether ANSI styling is used is decided once, when it is built.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Sequence

from rich.console import Console, RenderableType
from rich.text import Text

if TYPE_CHECKING:
    from pod_dispatch.config import Config


@dataclass
class QueuedWarning:
    message: str
    actions: list[str] = field(default_factory=list)
    verbose_only: bool = False


def detect_ansi(argv: Sequence[str]) -> bool:
    """Decide the formatting strategy for an invocation.

    ANSI is disabled by ``NO_COLOR`` or an explicit ``--no-ansi``.
    """
    if "NO_COLOR" in os.environ:
        return False
    return "--no-ansi" not in argv


def _make_console(ansi: bool, stderr: bool = False) -> Console:
    return Console(
        highlight=False,
        no_color=not ansi,
        color_system="auto" if ansi else None,
        soft_wrap=True,
        stderr=stderr,
    )


class Output:
    """Console wrapper bound to one invocation's Config."""

    def __init__(self, config: Config, ansi: bool = True) -> None:
        self.config = config
        self.ansi = ansi
        self.console = _make_console(ansi)
        self.err_console = _make_console(ansi, stderr=True)
        self.warnings: list[QueuedWarning] = []

    # ── Regular output (respects --silent) ─────────────────────────────

    def puts(self, msg: str) -> None:
        """Print a plain line unless the invocation is silent."""
        if self.config.silent:
            return
        self.console.print(Text(msg))

    def notice(self, msg: str) -> None:
        """Print a ``[!]`` notice in green, preceded by a blank line."""
        if self.config.silent:
            return
        self.console.print(Text(f"\n[!] {msg}", style="green"))

    def debug(self, msg: str) -> None:
        """Print a dimmed line only when verbose."""
        if not self.config.verbose or self.config.silent:
            return
        self.console.print(Text(f"-> {msg}", style="dim"))

    # ── Failure output (always shown) ──────────────────────────────────

    def informative(self, msg: str) -> None:
        """Print an advisory ``[!] message`` line in red."""
        self.console.print(Text(f"[!] {msg}", style="red"))

    def plain(self, msg: str) -> None:
        self.console.print(Text(msg))

    def banner(self, renderable: RenderableType) -> None:
        self.console.print(renderable)

    # ── Deferred warnings ──────────────────────────────────────────────

    def warn(self, msg: str, actions: Sequence[str] = (), verbose_only: bool = False) -> None:
        """Queue a non-fatal warning; shown by ``print_warnings``."""
        self.warnings.append(QueuedWarning(msg, list(actions), verbose_only))

    def print_warnings(self) -> None:
        """Flush queued warnings to stderr. Each warning is printed once."""
        pending, self.warnings = self.warnings, []
        for warning in pending:
            if warning.verbose_only and not self.config.verbose:
                continue
            self.err_console.print(Text(f"\n[!] {warning.message}", style="yellow"))
            for action in warning.actions:
                self.err_console.print(Text(f"    - {action}"))
