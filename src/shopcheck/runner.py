"""Sequential scenario execution.

Steps run one after another against a live server. Every response is
classified and reported; the run continues past failed steps. A transport
failure or a missing variable ends the run. Nothing already done on the
server is undone.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable

import httpx

from .client import ApiClient, response_json, response_message
from .config import DEFAULT_HEALTH_PATH
from .errors import MissingVariableError, ShopcheckError, StepStatus, classify
from .readiness import HealthPoller
from .scenario import CLIENT_TYPE_HEADER, Scenario, ScenarioContext, Step, extract
from .shared.auth import bearer_headers
from .shared.logging import get_logger

logger = get_logger(__name__)

ResultCallback = Callable[["StepResult"], None]


@dataclass
class StepResult:
    """Outcome of one executed step (or one iteration of a foreach step)."""

    name: str
    status: StepStatus
    detail: str
    status_code: int | None = None
    elapsed_ms: float = 0.0
    method: str = ""
    path: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "ok": self.status.ok,
            "status_code": self.status_code,
            "detail": self.detail,
            "method": self.method,
            "path": self.path,
            "elapsed_ms": round(self.elapsed_ms, 1),
        }


@dataclass
class ScenarioReport:
    """Results of a scenario run."""

    scenario: str
    results: list[StepResult] = field(default_factory=list)
    aborted: bool = False
    abort_reason: str | None = None
    abort_hint: str | None = None

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.status.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.status.ok)

    def to_dict(self) -> dict[str, Any]:
        return {
            "scenario": self.scenario,
            "passed": self.passed,
            "failed": self.failed,
            "aborted": self.aborted,
            "abort_reason": self.abort_reason,
            "abort_hint": self.abort_hint,
            "steps": [r.to_dict() for r in self.results],
        }


class ScenarioRunner:
    """Executes the steps of a scenario in order."""

    def __init__(
        self,
        client: ApiClient,
        client_type: str | None = None,
        on_result: ResultCallback | None = None,
    ):
        """Initialize runner.

        Args:
            client: Entered ApiClient
            client_type: Default x-client-type for steps that do not set one
            on_result: Called with each StepResult as soon as it is known
        """
        self.client = client
        self.client_type = client_type
        self.on_result = on_result

    async def run(
        self,
        scenario: Scenario,
        variables: dict[str, Any] | None = None,
    ) -> ScenarioReport:
        """Run all steps of a scenario.

        Args:
            scenario: Scenario to run
            variables: Values overriding the scenario's own variables

        Returns:
            ScenarioReport with one result per executed step
        """
        report = ScenarioReport(scenario=scenario.name)
        try:
            context = ScenarioContext({**scenario.variables, **(variables or {})})
        except ShopcheckError as e:
            report.aborted = True
            report.abort_reason = e.message
            report.abort_hint = "Check the scenario variables and the -V values."
            logger.warning("scenario_aborted", scenario=scenario.name, error=e.message)
            return report

        logger.info("scenario_started", scenario=scenario.name, steps=len(scenario.steps))

        for step in scenario.steps:
            try:
                await self._execute(step, context, report)
            except ShopcheckError as e:
                self._record(
                    report,
                    StepResult(
                        name=step.name,
                        status=StepStatus.ABORTED,
                        detail=e.message,
                        method=step.method,
                        path=step.path,
                    ),
                )
                report.aborted = True
                report.abort_reason = e.message
                report.abort_hint = e.hint
                logger.warning(
                    "scenario_aborted", scenario=scenario.name, step=step.name, error=e.message
                )
                break

        logger.info(
            "scenario_finished",
            scenario=scenario.name,
            passed=report.passed,
            failed=report.failed,
            aborted=report.aborted,
        )
        return report

    async def _execute(self, step: Step, context: ScenarioContext, report: ScenarioReport) -> None:
        if not step.foreach:
            self._record(report, await self._run_once(step, context, step.name))
            return

        items = context.get(step.foreach)
        if not isinstance(items, list):
            self._record(
                report,
                StepResult(
                    name=step.name,
                    status=StepStatus.FAILED,
                    detail=f"'{step.foreach}' is not a list",
                    method=step.method,
                    path=step.path,
                ),
            )
            return
        if not items:
            self._record(
                report,
                StepResult(
                    name=step.name,
                    status=StepStatus.PASSED,
                    detail=f"no items in '{step.foreach}'",
                    method=step.method,
                    path=step.path,
                ),
            )
            return

        try:
            for item in items:
                context.set("item", item)
                self._record(report, await self._run_once(step, context, f"{step.name} [{item}]"))
        finally:
            context.unset("item")

    async def _run_once(self, step: Step, context: ScenarioContext, label: str) -> StepResult:
        path = context.render_path(step.path)
        params = context.render(step.params)
        body = context.render(step.body)
        headers = {k: str(v) for k, v in context.render(step.headers).items()}
        if step.auth:
            headers.update(bearer_headers(context.get(step.auth)))
        client_type = step.client_type or self.client_type
        if client_type:
            headers.setdefault(CLIENT_TYPE_HEADER, client_type)

        started = time.perf_counter()
        response = await self.client.request(
            step.method, path, json=body, params=params, headers=headers
        )
        elapsed_ms = (time.perf_counter() - started) * 1000

        status, detail = classify(step.expect, response.status_code, response_message(response))
        if status is StepStatus.PASSED:
            status, detail = self._post_checks(step, context, response, detail)

        return StepResult(
            name=label,
            status=status,
            detail=detail,
            status_code=response.status_code,
            elapsed_ms=elapsed_ms,
            method=step.method,
            path=path,
        )

    def _post_checks(
        self,
        step: Step,
        context: ScenarioContext,
        response: httpx.Response,
        detail: str,
    ) -> tuple[StepStatus, str]:
        data = response_json(response)

        if step.check:
            try:
                failure = step.check(data, context)
            except MissingVariableError:
                raise
            except (AttributeError, LookupError, TypeError, ValueError) as e:
                failure = f"unexpected response shape: {e}"
            if failure:
                return StepStatus.FAILED, failure

        for var, source in step.capture.items():
            try:
                value = extract(data, source)
            except LookupError:
                return StepStatus.FAILED, f"response has no '{source}'"
            context.set(var, value)
            logger.debug("captured", variable=var, source=source)

        shown = []
        for source in step.show:
            try:
                shown.append(f"{source}={extract(data, source)}")
            except LookupError:
                shown.append(f"{source}=<missing>")
        if shown:
            detail = f"{detail} ({', '.join(shown)})"
        return StepStatus.PASSED, detail

    def _record(self, report: ScenarioReport, result: StepResult) -> None:
        report.results.append(result)
        if self.on_result:
            self.on_result(result)


async def run_scenario(
    scenario: Scenario,
    base_url: str,
    variables: dict[str, Any] | None = None,
    timeout: float = 30.0,
    client_type: str | None = None,
    on_result: ResultCallback | None = None,
    poller: HealthPoller | None = None,
    health_path: str = DEFAULT_HEALTH_PATH,
    insecure: bool = False,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ScenarioReport:
    """Run a scenario against a server, optionally waiting for it first.

    Args:
        scenario: Scenario to run
        base_url: API root URL
        variables: Variable overrides
        timeout: Per-request timeout in seconds
        client_type: Default x-client-type header
        on_result: Per-step result callback
        poller: When given, poll the health endpoint before the first step
        health_path: Health endpoint path relative to the server root
        insecure: Skip SSL certificate verification
        transport: Optional httpx transport override

    Returns:
        ScenarioReport
    """
    if poller is not None:
        health = await poller.wait_for_healthy(
            base_url, path=health_path, insecure=insecure, transport=transport
        )
        if not health.healthy:
            return ScenarioReport(
                scenario=scenario.name,
                aborted=True,
                abort_reason=health.error,
                abort_hint="Start the server or raise --wait-timeout.",
            )

    async with ApiClient(
        base_url, timeout=timeout, insecure=insecure, transport=transport
    ) as client:
        runner = ScenarioRunner(client, client_type=client_type, on_result=on_result)
        return await runner.run(scenario, variables)
