"""CLI utility functions."""

import json
from pathlib import Path
from typing import Any

import yaml


def parse_variables(
    var_flags: tuple[str, ...],
    var_file: str | None,
) -> dict[str, Any]:
    """Parse scenario variables from flags and file.

    Args:
        var_flags: Tuple of KEY=VALUE strings
        var_file: Path to JSON/YAML file with variables

    Returns:
        Dictionary of variables
    """
    variables: dict[str, Any] = {}

    # Parse variable file first (if provided)
    if var_file:
        file_path = Path(var_file)
        with file_path.open() as f:
            if file_path.suffix in [".yaml", ".yml"]:
                variables = yaml.safe_load(f) or {}
            elif file_path.suffix == ".json":
                variables = json.load(f)
            else:
                raise ValueError(f"Unsupported variable file format: {file_path.suffix}")
        if not isinstance(variables, dict):
            raise ValueError(f"Variable file must contain a mapping: {var_file}")

    # Flags override file values
    for var_str in var_flags:
        if "=" not in var_str:
            raise ValueError(f"Invalid variable format: {var_str}. Expected KEY=VALUE")

        key, value = var_str.split("=", 1)

        # Numbers, lists and objects as JSON; everything else stays a string
        try:
            variables[key] = json.loads(value)
        except json.JSONDecodeError:
            variables[key] = value

    return variables
