"""CLI argument parsers and validators."""

from __future__ import annotations

from typing import Union

import typer


def parse_task(value: str) -> tuple[str, str]:
    """Parse a task argument in format INPUT_DIR=OUTPUT_FILE."""
    if "=" not in value:
        raise typer.BadParameter(f"Must be INPUT_DIR=OUTPUT_FILE, got: {value!r}")
    input_dir, output_file = value.split("=", 1)
    if not input_dir or not output_file:
        raise typer.BadParameter(f"Must be INPUT_DIR=OUTPUT_FILE, got: {value!r}")
    return input_dir, output_file


def parse_amd(values: list[str]) -> Union[bool, str, list[str]]:
    """Map repeated --amd values onto the amd option.

    ``--amd true`` (or a single ``handlebars``) is the default dependency,
    one other value a named dependency, several values a dependency list.
    """
    if not values:
        return False
    if len(values) == 1:
        value = values[0].strip()
        if value.lower() in {"true", "yes", "1"}:
            return True
        if not value:
            raise typer.BadParameter("AMD dependency must not be empty")
        return value
    return [value.strip() for value in values]
