"""Process entry and dispatch.

Public API:
    create_registry(spec) -> CommandRegistry
    run(spec, argv) -> int
    main() -> None  (console script)
"""

from __future__ import annotations

import sys
from typing import Callable, Sequence

from pod_dispatch import __version__
from pod_dispatch.argv import Argv
from pod_dispatch.command import Invocation
from pod_dispatch.config import Config
from pod_dispatch.errors import NoSuchCommandError, SpecValidationError
from pod_dispatch.help import render_banner
from pod_dispatch.output import Output, detect_ansi
from pod_dispatch.plugins import PluginLoader
from pod_dispatch.preconditions import effective_uid, run_preconditions
from pod_dispatch.registry import CommandRegistry
from pod_dispatch.report import report_error
from pod_dispatch.spec import NAME_RE, CliSpec

POD_SPEC = CliSpec(
    prog_name="pod",
    app_display_name="CocoaPods",
    version=__version__,
    description="CocoaPods, the Cocoa library package manager.",
    plugin_prefixes=("claide", "cocoapods"),
    issues_url="https://github.com/CocoaPods/CocoaPods/issues",
)


class Dispatcher:
    """Resolves argv against the frozen tree and runs the matched leaf."""

    def __init__(
        self,
        spec: CliSpec,
        registry: CommandRegistry,
        config: Config,
        output: Output,
    ) -> None:
        self.spec = spec
        self.registry = registry
        self.config = config
        self.output = output

    def dispatch(self, argv: Sequence[str]) -> None:
        """Resolve, construct and execute one command. Conditions propagate."""
        args = Argv(argv)
        node = self.registry.resolve(args)

        if node.abstract and args.peek_argument() is not None:
            raise NoSuchCommandError(node, args.peek_argument())
        if not node.passthrough:
            if args.has_flag("help"):
                self.output.banner(render_banner(node))
                return
            if node.is_root and args.has_flag("version"):
                self.output.plain(self.spec.version)
                return
        self.registry.require_leaf(node, args)

        invocation = Invocation(node, args, self)
        self.output.debug(f"Running `{node.full_name}`")
        invocation.execute()


def create_registry(spec: CliSpec) -> CommandRegistry:
    """Validate ``spec`` and build the root of its command tree."""
    _validate_spec(spec)
    return CommandRegistry(
        spec.prog_name,
        summary=spec.description,
        description=spec.description,
        plugin_prefixes=spec.plugin_prefixes,
    )


def run(
    spec: CliSpec,
    argv: Sequence[str] | None = None,
    *,
    registry: CommandRegistry | None = None,
    config: Config | None = None,
    loader: PluginLoader | None = None,
    uid_getter: Callable[[], int] = effective_uid,
) -> int:
    """Execute the CLI and return an exit code.

    Sequence:
    1. Preconditions (superuser, toolchain licence)
    2. Load plugins, queueing failures as warnings
    3. Freeze the tree, resolve argv and run the leaf
    4. Report any raised condition
    5. Flush queued warnings, whatever happened
    """
    args = list(sys.argv[1:] if argv is None else argv)
    config = config if config is not None else Config()
    output = Output(config, ansi=detect_ansi(args))
    if not output.ansi:
        config.ansi = False
    loader = loader if loader is not None else PluginLoader()

    try:
        try:
            run_preconditions(spec, uid_getter)
            if registry is None:
                registry = create_registry(spec)
            for failure in loader.load(registry, spec):
                output.warn(str(failure))
            registry.freeze()
            Dispatcher(spec, registry, config, output).dispatch(args)
            return 0
        except BaseException as exc:
            return report_error(exc, spec, config, output, args, loader.loaded)
    finally:
        output.print_warnings()


def main() -> None:
    sys.exit(run(POD_SPEC))


# ── Validation ───────────────────────────────────────────────────────────────


def _validate_spec(spec: CliSpec) -> None:
    """Validate CliSpec required fields."""
    if not spec.prog_name:
        raise SpecValidationError("prog_name must not be empty")
    if not NAME_RE.match(spec.prog_name):
        raise SpecValidationError(f"prog_name '{spec.prog_name}' is not a valid name")
    if not spec.app_display_name:
        raise SpecValidationError("app_display_name must not be empty")
    if not spec.version:
        raise SpecValidationError("version must not be empty")
    if not spec.description:
        raise SpecValidationError("description must not be empty")
    for prefix in spec.plugin_prefixes:
        if not NAME_RE.match(prefix):
            raise SpecValidationError(f"plugin prefix '{prefix}' is not a valid name")
    if spec.license_check_timeout <= 0:
        raise SpecValidationError("license_check_timeout must be positive")
