"""CLI output formatting helpers.

Step results, summaries and reports are command output: they go to stdout
through click. Errors go to stderr through rich.
"""

from typing import Any

import click
import yaml
from rich.console import Console
from rich.markup import escape

from .config import CLIConfig
from .errors import StepStatus
from .payment_url import PaymentResult
from .processor import WEBHOOK_SETUP_HINT, WebhookStatus
from .readiness import HealthCheckResult
from .repair import RepairReport, UserCheck
from .runner import ScenarioReport, StepResult
from .scenario import Scenario, Step

err_console = Console(stderr=True, highlight=False)

STATUS_MARKS = {
    StepStatus.PASSED: "✓",
    StepStatus.EXPECTED_FAILURE: "✓",
    StepStatus.FAILED: "✗",
    StepStatus.UNEXPECTED_SUCCESS: "✗",
    StepStatus.ABORTED: "✗",
}


def print_error(message: str, hint: str | None = None) -> None:
    """Print an error and an optional hint on stderr."""
    err_console.print(f"[red]Error:[/red] {escape(message)}", soft_wrap=True)
    if hint:
        err_console.print(f"[dim]{escape(hint)}[/dim]", soft_wrap=True)


def print_step_result(result: StepResult) -> None:
    """Print one pass/fail line.

    Args:
        result: Step result, printed as soon as the step finishes
    """
    mark = STATUS_MARKS[result.status]
    line = f"  {mark} {result.name}: {result.detail}"
    if result.status is StepStatus.EXPECTED_FAILURE:
        line += " (expected)"
    elif result.status is StepStatus.UNEXPECTED_SUCCESS:
        line += " (unexpected success)"
    click.echo(line)


def print_report_summary(report: ScenarioReport) -> None:
    """Print the totals of a run and the abort reason, if any."""
    click.echo()
    total = len(report.results)
    click.echo(f"{report.scenario}: {report.passed}/{total} steps passed", nl=False)
    if report.failed:
        click.echo(f", {report.failed} failed")
    else:
        click.echo()

    if report.aborted:
        click.echo(f"Run aborted: {report.abort_reason}")
        if report.abort_hint:
            click.echo(f"  {report.abort_hint}")


def _describe_expectation(step: Step) -> str:
    expect = step.expect
    if expect.failure:
        return f"rejected with {expect.status}"
    if expect.status is None:
        return "2xx"
    return str(expect.status)


def print_scenario_list(scenarios: list[Scenario]) -> None:
    """Print scenario names with their descriptions."""
    click.echo(f"Scenarios ({len(scenarios)}):\n")
    width = max((len(s.name) for s in scenarios), default=0)
    for scenario in scenarios:
        click.echo(f"  {scenario.name.ljust(width)}  {scenario.description}")


def print_scenario_detail(scenario: Scenario) -> None:
    """Print a scenario's variables and steps.

    Args:
        scenario: Scenario to describe
    """
    click.echo(f"Scenario: {scenario.name}")
    if scenario.description:
        click.echo(f"Description: {scenario.description}")
    click.echo()

    if scenario.variables:
        click.echo("Variables:")
        for name, value in scenario.variables.items():
            click.echo(f"  - {name}: {value}")
        click.echo()

    click.echo("Steps:")
    for i, step in enumerate(scenario.steps, 1):
        extras = []
        if step.auth:
            extras.append(f"auth: {step.auth}")
        if step.client_type:
            extras.append(f"client: {step.client_type}")
        if step.foreach:
            extras.append(f"foreach: {step.foreach}")
        if step.capture:
            extras.append(f"captures: {', '.join(step.capture)}")
        suffix = f" [{'; '.join(extras)}]" if extras else ""
        click.echo(
            f"  {i}. {step.name}: {step.method} {step.path} -> "
            f"{_describe_expectation(step)}{suffix}"
        )


def print_payment_result(url: str, result: PaymentResult) -> None:
    click.echo(f"URL: {url}")
    click.echo(f"Result: {result.type.value}")
    if result.session_id:
        click.echo(f"Session ID: {result.session_id}")
    if result.message:
        click.echo(f"Message: {result.message}")


def print_health_result(url: str, result: HealthCheckResult) -> None:
    if result.healthy:
        click.echo(
            f"✓ Server ready at {url} (HTTP {result.status_code}, "
            f"{result.attempts} attempts, {result.elapsed_seconds:.1f}s)"
        )
    else:
        click.echo(f"✗ {result.error}")


def _presence(configured: bool) -> str:
    return "✓ configured" if configured else "✗ missing"


def print_webhook_status(status: WebhookStatus) -> None:
    """Print webhook endpoints, recent events and key presence."""
    click.echo("Keys:")
    click.echo(f"  Secret key: {_presence(status.secret_key_configured)}")
    click.echo(f"  Webhook secret: {_presence(status.webhook_secret_configured)}")
    click.echo()

    if not status.endpoints:
        click.echo("No webhook endpoint configured.\n")
        click.echo(WEBHOOK_SETUP_HINT)
        return

    click.echo(f"Webhook endpoints ({len(status.endpoints)}):")
    for endpoint in status.endpoints:
        click.echo(f"  - {endpoint.url} ({endpoint.status})")
        click.echo(f"    id: {endpoint.id}")
        click.echo(f"    events: {', '.join(endpoint.enabled_events) or 'none'}")
    click.echo()

    if not status.events:
        click.echo("No recent payment events.")
        return

    click.echo(f"Recent payment events ({len(status.events)}):")
    for event in status.events:
        created = event.created.strftime("%Y-%m-%d %H:%M:%S") if event.created else "?"
        click.echo(f"  - {created} {event.type} ({event.id})")
        if event.type == "checkout.session.completed":
            click.echo(f"    order: {event.order_id or '?'}  user: {event.user_id or '?'}")
            if event.amount is not None:
                click.echo(f"    amount: {event.amount:.2f} {(event.currency or '').upper()}")
        if event.pending_webhooks:
            click.echo(f"    pending webhooks: {event.pending_webhooks}")


def print_repair_report(report: RepairReport) -> None:
    click.echo(f"Auth users: {report.users}")
    click.echo(f"Profiles: {report.profiles_before}")
    click.echo(f"Users without profile: {len(report.missing)}")

    if not report.missing:
        click.echo("\n✓ Every user has a profile")
        return

    for user in report.missing:
        click.echo(f"  - {user.email or '?'} ({user.id})")

    if report.dry_run:
        click.echo("\nDry run: no profile created")
        return

    click.echo(f"\nCreated: {len(report.created)}")
    click.echo(f"Failed: {len(report.failures)}")
    for failure in report.failures:
        click.echo(f"  ✗ {failure.user.email or failure.user.id}: {failure.error}")

    click.echo(f"Profiles after repair: {report.profiles_after}")
    if report.complete:
        click.echo("✓ Every user now has a profile")
    else:
        click.echo("⚠ Some users still have no profile")


def print_user_check(check: UserCheck) -> None:
    click.echo(f"User: {check.user.email or '?'} ({check.user.id})")
    if check.user.metadata:
        click.echo("Metadata:")
        for key, value in check.user.metadata.items():
            click.echo(f"  {key}: {value}")

    if check.profile is None:
        click.echo("✗ No profile row")
        return
    click.echo("Profile (created):" if check.created else "Profile:")
    print_config_yaml(check.profile, indent=True)


def print_config_yaml(data: dict[str, Any], indent: bool = False) -> None:
    """Print a mapping as YAML.

    Args:
        data: Data to print
        indent: Indent every line by two spaces
    """
    yaml_str = yaml.dump(data, default_flow_style=False, sort_keys=False)
    if not indent:
        click.echo(yaml_str, nl=False)
        return
    for line in yaml_str.splitlines():
        click.echo(f"  {line}")


def print_config(config: CLIConfig) -> None:
    """Print the effective configuration with the source of each value."""
    for key, value in config.to_dict().items():
        shown = "(not set)" if value is None else value
        click.echo(f"{key}: {shown}  [{config.get_source(key)}]")
