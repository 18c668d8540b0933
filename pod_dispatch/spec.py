"""Immutable configuration dataclasses for pod-dispatch.

All spec objects are frozen dataclasses — no runtime logic, no I/O.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable

# Regex for valid command names
NAME_RE = re.compile(r"^[a-z][a-z0-9-]*$")

# Regex for valid long-flag names (without the leading dashes)
FLAG_RE = re.compile(r"^[a-z][a-z0-9-]*$")


class OptionKind(Enum):
    SWITCH = auto()
    VALUE = auto()


@dataclass(frozen=True)
class Option:
    """A long flag declared on one command node and inherited by its descendants.

    Switches accept ``--name`` and the negated ``--no-name``; value options
    accept ``--name=VALUE``.
    """

    name: str
    description: str = ""
    kind: OptionKind = OptionKind.SWITCH
    # documented as --no-name; for switches that default to on
    inverted: bool = False

    def __post_init__(self) -> None:
        if not FLAG_RE.match(self.name):
            raise ValueError(f"Invalid option name '{self.name}': must match {FLAG_RE.pattern}")
        if self.is_switch and self.name.startswith("no-"):
            raise ValueError(
                f"Invalid switch name '{self.name}': declare Option('{self.name[3:]}', inverted=True)"
            )

    @property
    def is_switch(self) -> bool:
        return self.kind is OptionKind.SWITCH

    @property
    def flag(self) -> str:
        return f"--{self.name}"

    @property
    def spellings(self) -> tuple[str, ...]:
        """Every long-flag spelling this option consumes."""
        if self.is_switch:
            return (self.name, f"no-{self.name}")
        return (self.name,)

    def usage(self) -> str:
        if self.is_switch:
            return f"--no-{self.name}" if self.inverted else self.flag
        return f"{self.flag}={self.name.upper().replace('-', '_')}"


@dataclass(frozen=True)
class Argument:
    """A positional argument accepted by a leaf command."""

    name: str
    required: bool = True
    repeatable: bool = False

    def usage(self) -> str:
        text = self.name.upper()
        if self.repeatable:
            text += " ..."
        return text if self.required else f"[{text}]"


@dataclass(frozen=True)
class PluginSpec:
    """Plugin loading configuration.

    ``explicit`` holds import paths of ``register(registry, spec)`` callables
    loaded before any namespace discovery.
    """

    explicit: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class CliSpec:
    """Top-level immutable specification for a dispatching CLI.

    Downstream repos create exactly one instance and pass it to
    ``pod_dispatch.app.create_registry()`` or ``pod_dispatch.app.run()``.
    """

    prog_name: str
    app_display_name: str
    version: str
    description: str
    plugin_prefixes: tuple[str, ...] = ()
    plugins: PluginSpec = field(default_factory=PluginSpec)
    dev_env_var: str = "COCOA_PODS_ENV"
    dev_env_value: str = "development"
    license_check_command: tuple[str, ...] = ("/usr/bin/xcrun", "clang")
    license_check_timeout: float = 30.0
    installer_factory: Callable[[Any, Any, Any], Any] | None = None
    informative_errors: tuple[type[BaseException], ...] = ()
    issues_url: str = ""
