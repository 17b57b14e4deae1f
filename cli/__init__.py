"""CLI package for sending and inspecting seder payloads."""

from importlib import import_module
from types import ModuleType


def __getattr__(name: str) -> ModuleType:
    if name == "app":
        return import_module("cli.app")
    raise AttributeError(name)

# The Typer instance stays in ``cli.app`` rather than the package root so that
# ``cli.app`` keeps resolving to the module, which tests patch attributes on.

__all__ = []
