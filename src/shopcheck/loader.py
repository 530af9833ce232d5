"""Scenario files (YAML or JSON).

Example::

    name: login-smoke
    variables:
      email: test@user.com
      password: password123
    steps:
      - name: Login
        method: POST
        path: /auth/login
        body: {mail: "{{ email }}", password: "{{ password }}"}
        capture: {token: session.access_token}
      - name: Wrong password is rejected
        method: POST
        path: /auth/login
        body: {mail: "{{ email }}", password: nope}
        expect: {status: 401, failure: true}
"""

import json
from pathlib import Path
from typing import Any

import yaml

from .errors import ScenarioLoadError
from .scenario import Expectation, Scenario, Step
from .scenarios import BUILTIN_SCENARIOS, get_scenario
from .shared.paths import SCENARIOS_DIR

HTTP_METHODS = {"GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"}

STEP_KEYS = {
    "name",
    "method",
    "path",
    "body",
    "headers",
    "params",
    "expect",
    "capture",
    "show",
    "auth",
    "client_type",
    "foreach",
}

SCENARIO_SUFFIXES = (".yaml", ".yml", ".json")


def load_scenario_file(path: str | Path) -> Scenario:
    """Load a scenario from a YAML or JSON file.

    Raises:
        ScenarioLoadError: If the file cannot be read or is invalid
    """
    file_path = Path(path)
    try:
        text = file_path.read_text()
    except OSError as e:
        raise ScenarioLoadError(f"Cannot read scenario file {file_path}: {e}") from e

    try:
        if file_path.suffix == ".json":
            data = json.loads(text)
        elif file_path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            raise ScenarioLoadError(f"Unsupported scenario file format: {file_path.suffix}")
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ScenarioLoadError(f"Cannot parse {file_path}: {e}") from e

    return parse_scenario(data, default_name=file_path.stem)


def parse_scenario(data: Any, default_name: str = "scenario") -> Scenario:
    """Build a Scenario from decoded YAML/JSON data."""
    if not isinstance(data, dict):
        raise ScenarioLoadError("Scenario must be a mapping with a 'steps' list")

    raw_steps = data.get("steps")
    if not isinstance(raw_steps, list) or not raw_steps:
        raise ScenarioLoadError("Scenario must define a non-empty 'steps' list")

    variables = data.get("variables") or {}
    if not isinstance(variables, dict):
        raise ScenarioLoadError("'variables' must be a mapping")

    steps = [_parse_step(raw, index) for index, raw in enumerate(raw_steps, 1)]
    return Scenario(
        name=str(data.get("name") or default_name),
        description=str(data.get("description") or ""),
        steps=steps,
        variables=variables,
    )


def _parse_step(raw: Any, index: int) -> Step:
    where = f"step {index}"
    if not isinstance(raw, dict):
        raise ScenarioLoadError(f"{where}: must be a mapping")

    if raw.get("name"):
        where = f"step {index} ({raw['name']})"

    unknown = sorted(set(raw) - STEP_KEYS)
    if unknown:
        raise ScenarioLoadError(f"{where}: unknown keys: {', '.join(unknown)}")

    for key in ("method", "path"):
        if not raw.get(key):
            raise ScenarioLoadError(f"{where}: '{key}' is required")

    method = str(raw["method"]).upper()
    if method not in HTTP_METHODS:
        raise ScenarioLoadError(f"{where}: unsupported method '{raw['method']}'")

    for key in ("headers", "params", "capture"):
        if key in raw and not isinstance(raw[key], dict):
            raise ScenarioLoadError(f"{where}: '{key}' must be a mapping")

    show = raw.get("show") or []
    if isinstance(show, str):
        show = [show]

    return Step(
        name=str(raw.get("name") or f"Step {index}"),
        method=method,
        path=str(raw["path"]),
        body=raw.get("body"),
        headers={str(k): str(v) for k, v in (raw.get("headers") or {}).items()},
        params=dict(raw.get("params") or {}),
        expect=_parse_expectation(raw.get("expect"), where),
        capture={str(k): str(v) for k, v in (raw.get("capture") or {}).items()},
        show=[str(s) for s in show],
        auth=raw.get("auth"),
        client_type=raw.get("client_type"),
        foreach=raw.get("foreach"),
    )


def _parse_expectation(raw: Any, where: str) -> Expectation:
    if raw is None:
        return Expectation()
    if isinstance(raw, int) and not isinstance(raw, bool):
        return Expectation(status=raw)
    if isinstance(raw, str) and raw.lower() == "success":
        return Expectation(status=None)
    if not isinstance(raw, dict):
        raise ScenarioLoadError(f"{where}: 'expect' must be a status code or a mapping")

    unknown = sorted(set(raw) - {"status", "failure", "message_contains"})
    if unknown:
        raise ScenarioLoadError(f"{where}: unknown expect keys: {', '.join(unknown)}")

    failure = bool(raw.get("failure", False))
    status = raw.get("status", 400 if failure else 200)
    if status is not None and not isinstance(status, int):
        raise ScenarioLoadError(f"{where}: expect.status must be an integer")
    if failure and status is None:
        raise ScenarioLoadError(f"{where}: a failure expectation needs a status code")
    return Expectation(
        status=status,
        failure=failure,
        message_contains=raw.get("message_contains"),
    )


def resolve_scenario(name_or_path: str) -> Scenario:
    """Find a scenario by file path, user scenario name or built-in name.

    Lookup order: a path ending in .yaml/.yml/.json, ``~/.shopcheck/scenarios/<name>.yaml``
    (or .yml/.json), then the built-in registry.
    """
    candidate = Path(name_or_path)
    if candidate.suffix in SCENARIO_SUFFIXES:
        return load_scenario_file(candidate)

    if name_or_path not in BUILTIN_SCENARIOS:
        for suffix in SCENARIO_SUFFIXES:
            user_file = SCENARIOS_DIR / f"{name_or_path}{suffix}"
            if user_file.exists():
                return load_scenario_file(user_file)

    return get_scenario(name_or_path)
