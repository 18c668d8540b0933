"""Error classification and user-facing reporting.

Every condition raised while dispatching ends up in ``report_error`` exactly
once. It either returns the exit code to use or re-raises the condition:

- Cancelled      → ``[!] Cancelled``; re-raised when verbose, else exit 1
- ProcessExit    → re-raised unchanged
- UserFacing     → advisory message (plus banner for usage errors), exit 1
- InternalFault  → full error report, exit 1; re-raised in development mode
"""

from __future__ import annotations

import os
import platform
import sys
import traceback
from typing import TYPE_CHECKING, Sequence

from pod_dispatch.errors import ConditionKind, PlainInformativeError, UsageError, classify
from pod_dispatch.help import render_banner

if TYPE_CHECKING:
    from pod_dispatch.config import Config
    from pod_dispatch.output import Output
    from pod_dispatch.plugins import PluginHandle
    from pod_dispatch.spec import CliSpec


def is_development_mode(spec: CliSpec) -> bool:
    return os.environ.get(spec.dev_env_var) == spec.dev_env_value


def report_error(
    exc: BaseException,
    spec: CliSpec,
    config: Config,
    output: Output,
    argv: Sequence[str] = (),
    plugins: Sequence[PluginHandle] = (),
) -> int:
    """Print ``exc`` the way its kind demands and return the exit code, or re-raise."""
    kind = classify(exc, spec.informative_errors)

    if kind is ConditionKind.CANCELLED:
        output.informative("Cancelled")
        if config.verbose:
            raise exc
        return 1

    if kind is ConditionKind.PROCESS_EXIT:
        raise exc

    if kind is ConditionKind.USER_FACING:
        if isinstance(exc, UsageError) and exc.node is not None:
            output.banner(render_banner(exc.node))
        message = str(exc)
        if isinstance(exc, PlainInformativeError):
            output.plain(message)
        elif message:
            output.informative(message)
        return 1

    if kind is ConditionKind.INTERNAL_FAULT:
        if is_development_mode(spec):
            raise exc
        output.plain(error_report(exc, spec, argv, plugins))
        return 1

    raise AssertionError(f"unhandled condition kind: {kind}")


def error_report(
    exc: BaseException,
    spec: CliSpec,
    argv: Sequence[str] = (),
    plugins: Sequence[PluginHandle] = (),
) -> str:
    """Markdown diagnostic meant to be pasted into an issue."""
    command = " ".join([spec.prog_name, *argv])
    stack_rows = [
        (spec.app_display_name, spec.version),
        ("Python", sys.version.split()[0]),
        ("Platform", platform.platform()),
        ("Executable", sys.executable),
    ]
    width = max(len(k) for k, _ in stack_rows)
    stack = "\n".join(f"{k:>{width}} : {v}" for k, v in stack_rows)
    if plugins:
        plugin_lines = "\n".join(f"{p.name:<28} : {p.version or 'unknown'}" for p in plugins)
    else:
        plugin_lines = "(none)"
    backtrace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

    lines = [
        "",
        "――― MARKDOWN TEMPLATE ―――――――――――――――――――――――――――――――――――――――――――――――――――――――――――",
        "",
        "### Command",
        "",
        "```",
        command,
        "```",
        "",
        "### Report",
        "",
        "* What did you do?",
        "",
        "* What did you expect to happen?",
        "",
        "* What happened instead?",
        "",
        "### Stack",
        "",
        "```",
        stack,
        "```",
        "",
        "### Plugins",
        "",
        "```",
        plugin_lines,
        "```",
        "",
        "### Error",
        "",
        "```",
        f"{type(exc).__name__} - {exc}",
        backtrace.rstrip(),
        "```",
        "",
        "――― TEMPLATE END ――――――――――――――――――――――――――――――――――――――――――――――――――――――――――――――――",
        "",
        "[!] Oh no, an error occurred.",
    ]
    if spec.issues_url:
        lines += [
            "",
            "Search for existing GitHub issues similar to yours:",
            f"{spec.issues_url}/search?q={type(exc).__name__}&type=Issues",
        ]
    return "\n".join(lines)
