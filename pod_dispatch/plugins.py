"""Deterministic plugin discovery and loading.

Plugin callable signature: (registry: CommandRegistry, spec: CliSpec) -> None

Loading order:
1. spec.plugins.explicit — import paths loaded in list order
2. one source per namespace prefix, in ``spec.plugin_prefixes`` order

The default source for a prefix reads the entry-point group ``<prefix>.plugins``.
A failing plugin never aborts loading: every failure is collected as a
PluginLoadError and handed back to the caller, which reports it once the
command has finished.
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from importlib.metadata import entry_points
from typing import TYPE_CHECKING, Any, Callable, Iterable, Mapping

from pod_dispatch.errors import PluginLoadError

if TYPE_CHECKING:
    from pod_dispatch.registry import CommandRegistry
    from pod_dispatch.spec import CliSpec

# Entry-point group suffix; the full group is f"{prefix}{_EP_GROUP_SUFFIX}".
_EP_GROUP_SUFFIX = ".plugins"


@dataclass(frozen=True)
class PluginHandle:
    """A discovered, not yet imported, plugin."""

    name: str
    load: Callable[[], Callable[..., Any]]
    version: str = ""


PluginSource = Callable[[str], Iterable[PluginHandle]]


def entry_point_group(prefix: str) -> str:
    return f"{prefix}{_EP_GROUP_SUFFIX}"


def entry_point_source(prefix: str) -> list[PluginHandle]:
    """Discover every entry point published under ``prefix``."""
    handles = []
    for ep in sorted(entry_points(group=entry_point_group(prefix)), key=lambda e: e.name):
        dist = getattr(ep, "dist", None)
        version = dist.version if dist is not None else ""
        handles.append(PluginHandle(f"{prefix}-{ep.name}", ep.load, version))
    return handles


def _import_path_loader(import_path: str) -> Callable[[], Callable[..., Any]]:
    def _load() -> Callable[..., Any]:
        module_path, _, attr_name = import_path.rpartition(".")
        if not module_path:
            raise ImportError(f"Invalid import path: '{import_path}' (no module component)")
        module = importlib.import_module(module_path)
        return getattr(module, attr_name)

    return _load


class PluginLoader:
    """Registers plugin commands into a registry; safe to run more than once."""

    def __init__(self, sources: Mapping[str, PluginSource] | None = None) -> None:
        self._sources = dict(sources) if sources is not None else None
        self._loaded: dict[str, PluginHandle] = {}

    @property
    def loaded(self) -> list[PluginHandle]:
        return list(self._loaded.values())

    def sources_for(self, spec: CliSpec) -> dict[str, PluginSource]:
        if self._sources is not None:
            return self._sources
        return {prefix: entry_point_source for prefix in spec.plugin_prefixes}

    def load(self, registry: CommandRegistry, spec: CliSpec) -> list[PluginLoadError]:
        """Load every plugin not loaded yet and return the failures."""
        failures: list[PluginLoadError] = []

        # Phase 1: explicit plugins (import-path strings)
        for import_path in spec.plugins.explicit:
            handle = PluginHandle(import_path, _import_path_loader(import_path))
            self._load_one(handle, registry, spec, failures)

        # Phase 2: namespace discovery
        for prefix, source in self.sources_for(spec).items():
            try:
                handles = list(source(prefix))
            except Exception as exc:
                failures.append(PluginLoadError(f"{prefix}-*", f"discovery failed: {exc}"))
                continue
            for handle in handles:
                self._load_one(handle, registry, spec, failures)

        return failures

    def _load_one(
        self,
        handle: PluginHandle,
        registry: CommandRegistry,
        spec: CliSpec,
        failures: list[PluginLoadError],
    ) -> None:
        if handle.name in self._loaded:
            return
        try:
            callable_ = handle.load()
        except Exception as exc:
            failures.append(PluginLoadError(handle.name, str(exc)))
            return

        try:
            callable_(registry, spec)
        except Exception as exc:
            failures.append(PluginLoadError(handle.name, f"raised {type(exc).__name__}: {exc}"))
            return
        self._loaded[handle.name] = handle
