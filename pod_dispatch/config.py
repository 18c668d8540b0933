"""Per-invocation shared settings (the Config Context)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class Config:
    """Settings shared by every command of a single invocation.

    A Config is created once by ``run()`` and passed explicitly to whatever
    needs it. Nested invocations reuse the outer instance, which is why
    ``assign_flag`` never overwrites a value with an absent flag.
    """

    silent: bool = False
    verbose: bool = False
    ansi: bool = True
    sandbox: Any = None
    podfile: Any = None
    lockfile: Any = None
    sources_manager: Any = None

    def assign_flag(self, name: str, value: bool | None) -> None:
        """Set ``name`` when the command line supplied it; ``None`` leaves it untouched."""
        if value is None:
            return
        setattr(self, name, value)
