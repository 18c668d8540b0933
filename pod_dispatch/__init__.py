"""pod-dispatch: command dispatch core for the pod package-manager CLI."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pod-dispatch")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"

__all__ = ["__version__"]
