"""Leaf construction: option parsing, Config propagation and collaborator helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click
import typer

from pod_dispatch.argv import Argv
from pod_dispatch.errors import (
    InformativeError,
    UnknownArgumentsError,
    UnknownOptionError,
    UsageError,
)
from pod_dispatch.registry import CommandNode

if TYPE_CHECKING:
    from pod_dispatch.app import Dispatcher
    from pod_dispatch.config import Config
    from pod_dispatch.output import Output

# Config attributes driven by root switches of the same name.
_CONFIG_SWITCHES = ("silent", "verbose", "ansi")


class Invocation:
    """A resolved leaf command bound to its argv, Config and Output.

    Construction parses every effective option out of ``argv``, updates the
    shared Config for switches that were explicitly given and collects the
    declared positional arguments. Whatever is left after that is an error,
    except for passthrough leaves and flags reserved for plugin prefixes.
    """

    def __init__(self, node: CommandNode, argv: Argv, dispatcher: Dispatcher) -> None:
        if node.abstract:
            raise ValueError(f"'{node.full_name}' is abstract and cannot be invoked")
        self.node = node
        self.argv = argv
        self.dispatcher = dispatcher
        self.values: dict[str, bool | str | None] = {}
        self.arguments: dict[str, Any] = {}

        self._parse_options()
        for name in _CONFIG_SWITCHES:
            self.config.assign_flag(name, self.values.get(name))  # type: ignore[arg-type]
        if not node.passthrough:
            self._reject_unknown_flags()
            self._collect_arguments()

    @property
    def config(self) -> Config:
        return self.dispatcher.config

    @property
    def output(self) -> Output:
        return self.dispatcher.output

    def flag(self, name: str, default: bool | None = None) -> bool | None:
        value = self.values.get(name)
        return default if value is None else bool(value)

    def option(self, name: str, default: str | None = None) -> str | None:
        value = self.values.get(name)
        return default if value is None else str(value)

    # ── Execution ────────────────────────────────────────────────────────

    def execute(self) -> None:
        if self.node.typer_app is not None:
            self._execute_typer(self.node.typer_app)
        else:
            self.node.callback(self)  # type: ignore[misc]

    def _execute_typer(self, app: typer.Typer) -> None:
        command = typer.main.get_command(app)
        try:
            rv = command.main(
                args=self.argv.remainder,
                prog_name=self.node.full_name,
                standalone_mode=False,
            )
        except click.exceptions.Abort as exc:
            raise KeyboardInterrupt from exc
        except click.ClickException as exc:
            raise InformativeError(exc.format_message()) from exc
        if isinstance(rv, int) and rv != 0:
            raise SystemExit(rv)

    def invoke(self, *argv: str) -> None:
        """Run another command of the same tree with this invocation's Config."""
        self.dispatcher.dispatch(list(argv))

    # ── Helpers for leaf bodies ──────────────────────────────────────────

    def help(self, message: str = "") -> None:
        """Abort with ``message`` and this command's usage banner."""
        raise UsageError(message, self.node)

    def verify_podfile_exists(self) -> None:
        if not self.config.podfile:
            raise InformativeError("No `Podfile' found in the project directory.")

    def verify_lockfile_exists(self) -> None:
        if not self.config.lockfile:
            raise InformativeError(
                "No `Podfile.lock' found in the project directory, run `pod install'."
            )

    def installer_for_config(self) -> Any:
        """Build an installer from the Config's sandbox, podfile and lockfile."""
        factory = self.dispatcher.spec.installer_factory
        if factory is None:
            raise RuntimeError("No installer_factory configured on the CliSpec.")
        return factory(self.config.sandbox, self.config.podfile, self.config.lockfile)

    def ensure_master_spec_repo_exists(self) -> None:
        """Run ``setup`` when the sources manager has no working master repo."""
        manager = self.config.sources_manager
        if manager is None or manager.master_repo_functional():
            return
        self.output.debug("Master spec repo is not functional, running setup")
        self.invoke("setup")

    # ── Internals ────────────────────────────────────────────────────────

    def _parse_options(self) -> None:
        for option in self.node.effective_options():
            if option.name == "help" and self.node.passthrough:
                continue
            if option.is_switch:
                self.values[option.name] = self.argv.flag(option.name)
                continue
            value = self.argv.option(option.name)
            if value is None and self.argv.flag(option.name) is not None:
                raise UsageError(
                    f"The `{option.flag}` option requires a value (`{option.usage()}`).",
                    self.node,
                )
            self.values[option.name] = value

    def _reject_unknown_flags(self) -> None:
        prefixes = tuple(f"--{p}-" for p in self.node.root.plugin_prefixes)
        options = self.node.effective_options()
        switches = {f"--{s}" for o in options if o.is_switch for s in o.spellings}
        for raw in self.argv.flags:
            if prefixes and raw.startswith(prefixes):
                continue
            flag, sep, _ = raw.partition("=")
            if sep and flag in switches:
                raise UsageError(f"The `{flag}` option does not take a value.", self.node)
            known = [f"--{s}" for o in options for s in o.spellings]
            raise UnknownOptionError(flag, self.node, known)

    def _collect_arguments(self) -> None:
        for argument in self.node.arguments:
            if argument.repeatable:
                values = self.argv.shift_arguments()
                if argument.required and not values:
                    self.help(f"A `{argument.name.upper()}` is required.")
                self.arguments[argument.name] = values
                continue
            value = self.argv.shift_argument()
            if value is None and argument.required:
                self.help(f"A `{argument.name.upper()}` is required.")
            self.arguments[argument.name] = value
        leftover = self.argv.arguments
        if leftover:
            raise UnknownArgumentsError(leftover, self.node)
