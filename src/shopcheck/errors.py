"""Error types and step outcome classification.

A response that arrives is always classified against the step's expectation.
Only errors without a response (transport failures) and missing context
variables end a scenario run.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .scenario import Expectation


class StepStatus(str, Enum):
    """Outcome of a single scenario step."""

    PASSED = "passed"
    EXPECTED_FAILURE = "expected_failure"
    FAILED = "failed"
    UNEXPECTED_SUCCESS = "unexpected_success"
    ABORTED = "aborted"

    @property
    def ok(self) -> bool:
        return self in (StepStatus.PASSED, StepStatus.EXPECTED_FAILURE)


@dataclass
class ShopcheckError(Exception):
    """Base error for shopcheck."""

    message: str
    hint: str | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


@dataclass
class ApiClientError(ShopcheckError):
    """No response was received (connection refused, timeout)."""


@dataclass
class MissingVariableError(ShopcheckError):
    """A step references a context variable no earlier step produced."""

    variable: str = ""


@dataclass
class ScenarioLoadError(ShopcheckError):
    """Scenario file could not be parsed or validated."""


@dataclass
class ScenarioNotFoundError(ShopcheckError):
    """No built-in scenario and no file with that name."""


def classify(
    expectation: "Expectation",
    status_code: int,
    message: str | None = None,
) -> tuple[StepStatus, str]:
    """Classify an HTTP response against a step expectation.

    Args:
        expectation: What the step expects
        status_code: Observed HTTP status
        message: Error/info message extracted from the response body

    Returns:
        Tuple of (status, human-readable detail)
    """
    is_success = 200 <= status_code < 300

    if expectation.failure:
        if is_success:
            return StepStatus.UNEXPECTED_SUCCESS, (
                f"expected HTTP {expectation.status} but request succeeded ({status_code})"
            )
        if status_code != expectation.status:
            return StepStatus.FAILED, _with_message(
                f"expected HTTP {expectation.status}, got {status_code}", message
            )
        if expectation.message_contains and (
            not message or expectation.message_contains not in message
        ):
            return StepStatus.FAILED, (
                f"rejected with {status_code} but message did not contain "
                f"'{expectation.message_contains}': {message}"
            )
        return StepStatus.EXPECTED_FAILURE, _with_message(f"rejected with {status_code}", message)

    if expectation.status is None:
        status_ok = is_success
    else:
        status_ok = status_code == expectation.status

    if not status_ok:
        expected = f"HTTP {expectation.status}" if expectation.status else "2xx"
        return StepStatus.FAILED, _with_message(f"expected {expected}, got {status_code}", message)

    if expectation.message_contains and (
        not message or expectation.message_contains not in message
    ):
        return StepStatus.FAILED, (
            f"message did not contain '{expectation.message_contains}': {message}"
        )

    return StepStatus.PASSED, f"HTTP {status_code}"


def _with_message(text: str, message: str | None) -> str:
    if message:
        return f"{text}: {message}"
    return text
