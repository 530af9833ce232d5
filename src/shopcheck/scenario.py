"""Scenario model: steps, expectations and the context threaded between them.

Steps reference values produced by earlier steps with ``{{ var }}``
placeholders. Rendering happens right before a step executes, so a step can
only see what the steps before it captured.
"""

from __future__ import annotations

import re
import time
from urllib.parse import quote
from dataclasses import dataclass, field
from typing import Any, Callable

from .errors import MissingVariableError

PLACEHOLDER = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_.]*)\s*\}\}")

CLIENT_TYPE_HEADER = "x-client-type"

StepCheck = Callable[[Any, "ScenarioContext"], "str | None"]


@dataclass
class Expectation:
    """What a step expects from the server.

    ``failure=True`` marks a negative-test step: it passes only when the
    server rejects the request with exactly ``status``.
    """

    status: int | None = 200
    failure: bool = False
    message_contains: str | None = None

    @classmethod
    def rejected(cls, status: int = 400, message_contains: str | None = None) -> Expectation:
        return cls(status=status, failure=True, message_contains=message_contains)


@dataclass
class Step:
    """A single HTTP interaction."""

    name: str
    method: str
    path: str
    body: Any = None
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, Any] = field(default_factory=dict)
    expect: Expectation = field(default_factory=Expectation)
    capture: dict[str, str] = field(default_factory=dict)
    show: list[str] = field(default_factory=list)
    auth: str | None = None
    client_type: str | None = None
    foreach: str | None = None
    check: StepCheck | None = None

    def __post_init__(self) -> None:
        self.method = self.method.upper()


@dataclass
class Scenario:
    """A named, ordered list of steps."""

    name: str
    steps: list[Step]
    description: str = ""
    variables: dict[str, Any] = field(default_factory=dict)


class ScenarioContext:
    """Variable store shared by the steps of one run."""

    def __init__(self, variables: dict[str, Any] | None = None):
        self._values: dict[str, Any] = {"run_id": str(int(time.time() * 1000))}
        if variables:
            self._values.update(variables)
            # Variables may be built from run_id or from each other, in any order.
            # Each pass resolves one more link of a reference chain.
            templated = [n for n, v in variables.items() if _has_placeholder(v)]
            for _ in range(len(templated)):
                pending = [n for n in templated if _has_placeholder(self._values[n])]
                if not pending:
                    break
                for name in pending:
                    self._values[name] = self.render(self._values[name])

    def __contains__(self, name: str) -> bool:
        return name in self._values

    def get(self, name: str) -> Any:
        """Resolve a variable, following dotted paths into nested values."""
        head, _, rest = name.partition(".")
        if head not in self._values:
            raise MissingVariableError(
                f"Variable '{head}' is not set",
                hint="It is produced by an earlier step that did not succeed.",
                variable=head,
            )
        value = self._values[head]
        if rest:
            try:
                value = extract(value, rest)
            except LookupError:
                raise MissingVariableError(
                    f"Variable '{name}' is not set", variable=name
                ) from None
        return value

    def set(self, name: str, value: Any) -> None:
        self._values[name] = value

    def unset(self, name: str) -> None:
        self._values.pop(name, None)

    def as_dict(self) -> dict[str, Any]:
        return dict(self._values)

    def render(self, value: Any) -> Any:
        """Replace ``{{ var }}`` placeholders in strings, lists and dicts.

        A string consisting of a single placeholder is replaced by the raw
        value, so numbers and objects keep their type in JSON bodies.
        """
        if isinstance(value, str):
            whole = PLACEHOLDER.fullmatch(value.strip())
            if whole:
                return self.get(whole.group(1))
            return PLACEHOLDER.sub(lambda m: str(self.get(m.group(1))), value)
        if isinstance(value, dict):
            return {self.render(k): self.render(v) for k, v in value.items()}
        if isinstance(value, list):
            return [self.render(v) for v in value]
        return value

    def render_path(self, path: str) -> str:
        """Render a URL path, percent-encoding every substituted value."""
        return PLACEHOLDER.sub(lambda m: quote(str(self.get(m.group(1))), safe=""), path)


def _has_placeholder(value: Any) -> bool:
    return isinstance(value, str) and PLACEHOLDER.search(value) is not None


def extract(data: Any, path: str) -> Any:
    """Follow a dotted path into JSON data.

    Integer segments index lists; ``length`` on a list returns its size.
    An empty path returns the whole document.

    Raises:
        LookupError: If a segment does not exist
    """
    if path in ("", "."):
        return data
    current = data
    for segment in path.split("."):
        if isinstance(current, list):
            if segment == "length":
                current = len(current)
                continue
            try:
                current = current[int(segment)]
            except (ValueError, IndexError):
                raise LookupError(path) from None
        elif isinstance(current, dict):
            if segment not in current:
                raise LookupError(path)
            current = current[segment]
        else:
            raise LookupError(path)
    return current
