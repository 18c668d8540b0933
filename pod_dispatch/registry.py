"""Command registry — the command tree, its option inheritance and argv resolution.

Enforces naming rules, conflict rules, deterministic ordering, and freeze semantics.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Iterator, Sequence

from pod_dispatch.errors import (
    NoSuchCommandError,
    RegistryConflictError,
    RegistryFrozenError,
)
from pod_dispatch.spec import NAME_RE, Argument, Option

if TYPE_CHECKING:
    import typer

    from pod_dispatch.argv import Argv

# Options every command understands without re-declaring them.
ROOT_OPTIONS = (
    Option("silent", "Show nothing"),
    Option("version", "Show the version of the tool"),
    Option("verbose", "Show more debugging information"),
    Option("ansi", "Show output without ANSI codes", inverted=True),
    Option("help", "Show help banner of specified command"),
)


@dataclass(eq=False)
class CommandNode:
    name: str
    abstract: bool = False
    summary: str = ""
    description: str = ""
    options: list[Option] = field(default_factory=list)
    arguments: list[Argument] = field(default_factory=list)
    callback: Callable[..., Any] | None = None
    typer_app: typer.Typer | None = None
    plugin_prefixes: tuple[str, ...] = ()
    parent: CommandNode | None = field(default=None, repr=False)
    children: dict[str, CommandNode] = field(default_factory=dict, repr=False)

    @property
    def passthrough(self) -> bool:
        """Leaves backed by a Typer app parse their own flags."""
        return self.typer_app is not None

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def root(self) -> CommandNode:
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    @property
    def full_name(self) -> str:
        """Space-separated invocation path, e.g. ``pod repo add``."""
        return " ".join(n.name for n in self.lineage())

    def lineage(self) -> list[CommandNode]:
        """Nodes from the root down to (and including) this one."""
        chain: list[CommandNode] = []
        node: CommandNode | None = self
        while node is not None:
            chain.append(node)
            node = node.parent
        chain.reverse()
        return chain

    def effective_options(self) -> list[Option]:
        """Ancestor options root-first, followed by this node's own declarations."""
        result: list[Option] = []
        for node in self.lineage():
            result.extend(node.options)
        return result

    def walk(self) -> Iterator[CommandNode]:
        yield self
        for child in self.children.values():
            yield from child.walk()


class CommandRegistry:
    """Builds the command tree and resolves argv against it."""

    def __init__(
        self,
        prog_name: str,
        summary: str = "",
        description: str = "",
        plugin_prefixes: Sequence[str] = (),
    ) -> None:
        self.root = CommandNode(
            name=prog_name,
            abstract=True,
            summary=summary,
            description=description,
            options=list(ROOT_OPTIONS),
            plugin_prefixes=tuple(plugin_prefixes),
        )
        self._frozen = False

    # ── Public registration API ──────────────────────────────────────────

    def add_group(
        self,
        path: str,
        summary: str = "",
        description: str = "",
        options: Sequence[Option] = (),
    ) -> CommandNode:
        """Register an abstract group at ``path`` (``"repo"`` or ``"spec/lint"``).

        Re-registering an existing group merges instead of failing, so plugins
        can extend groups declared elsewhere.
        """
        self._check_frozen()
        *parents, name = path.split("/")
        self._validate_name(name)
        parent = self._resolve_parent("/".join(parents) or None)

        existing = parent.children.get(name)
        if existing is not None:
            if not existing.abstract:
                raise RegistryConflictError(path, "exists as a command, cannot re-register as group")
            if summary and existing.summary and summary != existing.summary:
                raise RegistryConflictError(
                    path, f"group summary mismatch: '{existing.summary}' vs '{summary}'"
                )
            if summary and not existing.summary:
                existing.summary = summary
            if description and not existing.description:
                existing.description = description
            self._add_options(existing, options)
            return existing

        node = self._attach(
            parent, CommandNode(name=name, abstract=True, summary=summary, description=description)
        )
        self._add_options(node, options)
        return node

    def add_command(
        self,
        group_path: str | None,
        name: str,
        callback: Callable[..., Any],
        summary: str = "",
        description: str = "",
        options: Sequence[Option] = (),
        arguments: Sequence[Argument] = (),
    ) -> CommandNode:
        """Register a leaf command, optionally under a group path."""
        self._check_frozen()
        self._validate_name(name)
        if not callable(callback):
            raise ValueError(f"Command '{name}' needs a callable callback, got {callback!r}")
        parent = self._resolve_parent(group_path)
        self._check_free(parent, group_path, name)

        node = CommandNode(
            name=name,
            summary=summary,
            description=description,
            arguments=list(arguments),
            callback=callback,
        )
        self._attach(parent, node)
        self._add_options(node, options)
        return node

    def add_typer_app(
        self,
        group_path: str | None,
        typer_app: typer.Typer,
        name: str,
        summary: str = "",
    ) -> CommandNode:
        """Register a full Typer app as a leaf that parses its own flags."""
        self._check_frozen()
        self._validate_name(name)
        parent = self._resolve_parent(group_path)
        self._check_free(parent, group_path, name)

        node = CommandNode(name=name, summary=summary, typer_app=typer_app)
        return self._attach(parent, node)

    def add_options(self, path: str | None, options: Sequence[Option]) -> None:
        """Declare extra options on an existing node (root when ``path`` is None)."""
        self._check_frozen()
        node = self.root if path is None else self.find(path)
        if node is None:
            raise RegistryConflictError(path or "", "no such command")
        self._add_options(node, options)

    def find(self, path: str) -> CommandNode | None:
        node = self.root
        for part in path.split("/"):
            child = node.children.get(part)
            if child is None:
                return None
            node = child
        return node

    def freeze(self) -> None:
        """Freeze the registry — no further mutations allowed."""
        self._frozen = True

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    # ── Resolution ───────────────────────────────────────────────────────

    def resolve(self, argv: Argv) -> CommandNode:
        """Consume leading subcommand names from ``argv`` and return the matched node.

        The walk is greedy: it descends while the next positional argument names
        a child. Abstract matches are returned as-is; ``require_leaf`` decides
        whether they are acceptable.
        """
        node = self.root
        while True:
            token = argv.peek_argument()
            if token is None or token not in node.children:
                return node
            argv.shift_argument()
            node = node.children[token]

    @staticmethod
    def require_leaf(node: CommandNode, argv: Argv) -> None:
        """Raise NoSuchCommandError unless ``node`` can be executed."""
        if not node.abstract:
            return
        raise NoSuchCommandError(node, argv.peek_argument())

    # ── Internals ────────────────────────────────────────────────────────

    def _attach(self, parent: CommandNode, node: CommandNode) -> CommandNode:
        node.parent = parent
        parent.children[node.name] = node
        return node

    def _add_options(self, node: CommandNode, options: Sequence[Option]) -> None:
        taken = {spelling for o in node.effective_options() for spelling in o.spellings}
        # An option is declared at one node only, so descendants count too.
        for descendant in node.walk():
            if descendant is not node:
                taken.update(s for o in descendant.options for s in o.spellings)
        for option in options:
            clash = taken.intersection(option.spellings)
            if clash:
                raise RegistryConflictError(
                    node.full_name, f"option '--{sorted(clash)[0]}' is already declared"
                )
            node.options.append(option)
            taken.update(option.spellings)

    def _check_frozen(self) -> None:
        """Raise RegistryFrozenError if the registry is frozen."""
        if self._frozen:
            raise RegistryFrozenError()

    @staticmethod
    def _validate_name(name: str) -> None:
        """Validate a command/group name against the naming regex."""
        if not NAME_RE.match(name):
            raise ValueError(f"Invalid command name '{name}': must match {NAME_RE.pattern}")

    @staticmethod
    def _check_free(parent: CommandNode, group_path: str | None, name: str) -> None:
        existing = parent.children.get(name)
        if existing is not None:
            kind = "group" if existing.abstract else "command"
            raise RegistryConflictError(
                f"{group_path + '/' if group_path else ''}{name}",
                f"already registered as {kind}",
            )

    def _resolve_parent(self, group_path: str | None) -> CommandNode:
        """Walk the group path and return its node, or the root for None.

        Auto-creates intermediate groups as needed.
        """
        if group_path is None:
            return self.root

        parts = group_path.split("/")
        node = self.root
        for i, part in enumerate(parts):
            if part not in node.children:
                self._validate_name(part)
                self._attach(node, CommandNode(name=part, abstract=True))
            node = node.children[part]
            if not node.abstract:
                path_so_far = "/".join(parts[: i + 1])
                raise RegistryConflictError(path_so_far, "expected group but found command")
        return node
