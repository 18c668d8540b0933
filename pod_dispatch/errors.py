"""Framework exceptions, condition taxonomy and exit-code mapping for pod-dispatch."""

from __future__ import annotations

import difflib
from enum import Enum
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from pod_dispatch.registry import CommandNode


class ConditionKind(Enum):
    """The four outcomes a raised condition can be classified into."""

    CANCELLED = "cancelled"
    PROCESS_EXIT = "process_exit"
    USER_FACING = "user_facing"
    INTERNAL_FAULT = "internal_fault"


class PodDispatchError(Exception):
    """Base exception for all pod-dispatch framework errors."""

    exit_code: int = 1


class InformativeError(PodDispatchError):
    """An expected failure whose message is shown to the user without a backtrace."""

    exit_code: int = 1


class PlainInformativeError(InformativeError):
    """Informative error printed verbatim, without the ``[!]`` marker."""


class UsageError(InformativeError):
    """Informative error that also prints the usage banner of ``node``."""

    def __init__(self, message: str = "", node: CommandNode | None = None) -> None:
        super().__init__(message)
        self.node = node


class NoSuchCommandError(UsageError):
    """Raised when argv resolves to an abstract node or names an unknown command."""

    def __init__(self, node: CommandNode, token: str | None = None) -> None:
        self.token = token
        self.suggestions: list[str] = list(node.children)
        if token is None:
            msg = "You must specify a subcommand"
            if self.suggestions:
                msg += f" ({', '.join(self.suggestions)})"
        else:
            msg = f"Unknown command: `{token}`"
            close = _close_matches(token, self.suggestions)
            if close:
                msg += f"\nDid you mean: {close[0]}?"
        super().__init__(msg, node)


class UnknownOptionError(UsageError):
    """Raised when a flag matches none of the command's effective options."""

    def __init__(self, flag: str, node: CommandNode, known: Sequence[str] = ()) -> None:
        self.flag = flag
        msg = f"Unknown option: `{flag}`"
        close = _close_matches(flag, known)
        if close:
            msg += f"\nDid you mean: {close[0]}?"
        super().__init__(msg, node)


class UnknownArgumentsError(UsageError):
    """Raised when free-form arguments are left over after a leaf consumed its own."""

    def __init__(self, arguments: Sequence[str], node: CommandNode) -> None:
        self.arguments = list(arguments)
        super().__init__(f"Unknown arguments: `{' '.join(arguments)}`", node)


class RegistryFrozenError(PodDispatchError):
    """Raised when a registration is attempted after the registry is frozen."""

    exit_code: int = 1

    def __init__(self, action: str = "register") -> None:
        super().__init__(f"Cannot {action}: command registry is frozen.")


class RegistryConflictError(PodDispatchError):
    """Raised when a command name collision is detected."""

    exit_code: int = 1

    def __init__(self, path: str, detail: str = "") -> None:
        msg = f"Registration conflict at '{path}'"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class PluginLoadError(PodDispatchError):
    """Describes a plugin that failed to import or raised during registration.

    The loader collects these instead of raising them so that one broken plugin
    never hides the others.
    """

    exit_code: int = 1

    def __init__(self, plugin_name: str, reason: str = "") -> None:
        msg = f"Failed to load plugin '{plugin_name}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
        self.plugin_name = plugin_name


class SpecValidationError(PodDispatchError):
    """Raised when CliSpec validation fails."""

    exit_code: int = 1

    def __init__(self, detail: str) -> None:
        super().__init__(f"Invalid CliSpec: {detail}")


def classify(
    exc: BaseException,
    informative_errors: Sequence[type[BaseException]] = (),
) -> ConditionKind:
    """Map any raised condition onto exactly one ConditionKind."""
    if isinstance(exc, KeyboardInterrupt):
        return ConditionKind.CANCELLED
    if isinstance(exc, SystemExit):
        return ConditionKind.PROCESS_EXIT
    if isinstance(exc, InformativeError):
        return ConditionKind.USER_FACING
    if informative_errors and isinstance(exc, tuple(informative_errors)):
        return ConditionKind.USER_FACING
    return ConditionKind.INTERNAL_FAULT


def _close_matches(word: str, candidates: Sequence[str]) -> list[str]:
    return difflib.get_close_matches(word, list(candidates), n=1, cutoff=0.6)
