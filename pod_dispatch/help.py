"""Usage banner rendering."""

from __future__ import annotations

from rich.console import Group, RenderableType
from rich.padding import Padding
from rich.table import Table
from rich.text import Text

from pod_dispatch.registry import CommandNode


def _usage_line(node: CommandNode) -> str:
    parts = ["$", node.full_name]
    if node.abstract:
        parts.append("COMMAND")
    else:
        parts.extend(arg.usage() for arg in node.arguments)
    return " ".join(parts)


def _grid(rows: list[tuple[Text, str]]) -> Table:
    grid = Table.grid(padding=(0, 4))
    grid.add_column(no_wrap=True)
    grid.add_column()
    for left, right in rows:
        grid.add_row(left, right)
    return grid


def render_banner(node: CommandNode) -> RenderableType:
    """Build the help banner for ``node``: usage, commands and options."""
    parts: list[RenderableType] = [
        Text("Usage:", style="underline"),
        Text(),
        Padding(Text(_usage_line(node), style="green"), (0, 0, 0, 4)),
    ]
    description = node.description or node.summary
    if description:
        parts += [Text(), Padding(Text(description), (0, 0, 0, 6))]

    if node.children:
        rows = [
            (Text(f"+ {child.name}", style="green"), child.summary)
            for child in node.children.values()
        ]
        parts += [Text(), Text("Commands:", style="underline"), Text(), Padding(_grid(rows), (0, 0, 0, 4))]

    options = [o for o in node.effective_options() if o.name != "version" or node.is_root]
    if options:
        rows = [(Text(o.usage(), style="blue"), o.description) for o in options]
        parts += [Text(), Text("Options:", style="underline"), Text(), Padding(_grid(rows), (0, 0, 0, 4))]

    parts.append(Text())
    return Group(*parts)
