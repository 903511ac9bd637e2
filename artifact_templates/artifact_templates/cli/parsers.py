"""CLI argument parsers and validators."""

from __future__ import annotations

import importlib

import typer


def parse_property(value: str) -> tuple[str, str]:
    """Parse a property argument in format NAME=VALUE."""
    if "=" not in value:
        raise typer.BadParameter(f"Must be NAME=VALUE, got: {value!r}")
    name, raw = value.split("=", 1)
    name = name.strip()
    if not name.isidentifier():
        raise typer.BadParameter(f"Invalid property name: {name!r}")
    return name, raw


def parse_properties(values: list[str]) -> dict[str, str]:
    return dict(map(parse_property, values))


def parse_file_mode(value: str) -> int:
    """Parse octal file mode string."""
    try:
        return int(value, 8)
    except ValueError as e:
        raise typer.BadParameter(f"Invalid octal mode: {value!r}") from e


def load_plugins(modules: list[str]) -> None:
    """Import modules declaring additional request kinds."""
    for module in modules:
        try:
            importlib.import_module(module)
        except ImportError as e:
            raise typer.BadParameter(f"Cannot import plugin module {module!r}: {e}") from e
