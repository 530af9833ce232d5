"""CLI main entry point."""

import asyncio
import json
import sys
from typing import Any

import click

__version__ = "0.1.0"  # Defined here to avoid circular import

from .config import CONFIG_KEYS, load_config, save_config, unset_config
from .errors import ShopcheckError
from .formatters import (
    print_config,
    print_error,
    print_health_result,
    print_payment_result,
    print_repair_report,
    print_report_summary,
    print_scenario_detail,
    print_scenario_list,
    print_step_result,
    print_user_check,
    print_webhook_status,
)
from .loader import resolve_scenario
from .payment_url import PaymentReturnHandler
from .processor import PaymentProcessorClient, collect_webhook_status
from .readiness import HealthPoller
from .repair import BaasAdminClient, check_user, repair_profiles
from .runner import run_scenario
from .scenarios import list_scenarios
from .shared.auth import (
    BAAS_SERVICE_KEY,
    PAYMENT_SECRET_KEY,
    PAYMENT_WEBHOOK_SECRET,
    SECRET_ENV_VARS,
    get_secret,
    mask,
    save_secret,
)
from .shared.logging import configure_logging, verbosity_to_level
from .utils import parse_variables


def _fail(error: ShopcheckError) -> None:
    print_error(error.message, error.hint)
    sys.exit(1)


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


@click.group()
@click.option("-s", "--server", help="API base URL (default: http://localhost:4000/api)")
@click.option("-t", "--timeout", type=int, help="Request timeout in seconds")
@click.option("--client-type", help="Default x-client-type header (e.g. dashboard)")
@click.option("-v", "--verbose", count=True, help="Increase verbosity")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.option("--log-json", is_flag=True, help="Emit diagnostic logs as JSON")
@click.option("-k", "--insecure", is_flag=True, help="Skip SSL certificate verification")
@click.pass_context
def cli(
    ctx: click.Context,
    server: str | None,
    timeout: int | None,
    client_type: str | None,
    verbose: int,
    json_output: bool,
    log_json: bool,
    insecure: bool,
) -> None:
    """Run HTTP scenarios against the shop API."""
    configure_logging(verbosity_to_level(verbose), json_output=log_json)
    ctx.ensure_object(dict)
    ctx.obj["config"] = load_config(
        {"server": server, "timeout": timeout, "client_type": client_type}
    )
    ctx.obj["json_output"] = json_output
    ctx.obj["insecure"] = insecure


@cli.command()
@click.argument("scenario")
@click.option("-V", "--var", "var_flags", multiple=True, help="Variable KEY=VALUE")
@click.option("--var-file", type=click.Path(exists=True), help="Variables file (YAML/JSON)")
@click.option("--wait", is_flag=True, help="Wait for the server to answer before the first step")
@click.option("--wait-timeout", type=float, default=30.0, help="Seconds to wait with --wait")
@click.option("--strict", is_flag=True, help="Exit non-zero when any step failed")
@click.pass_context
def run(
    ctx: click.Context,
    scenario: str,
    var_flags: tuple[str, ...],
    var_file: str | None,
    wait: bool,
    wait_timeout: float,
    strict: bool,
) -> None:
    """Run a built-in scenario or a scenario file."""
    config = ctx.obj["config"]
    json_output = ctx.obj["json_output"]

    try:
        variables = parse_variables(var_flags, var_file)
    except (ValueError, OSError) as e:
        print_error(str(e))
        sys.exit(1)

    try:
        loaded = resolve_scenario(scenario)
    except ShopcheckError as e:
        _fail(e)

    if not json_output:
        click.echo(f"Running {loaded.name} against {config.server}\n")

    report = asyncio.run(
        run_scenario(
            loaded,
            config.server,
            variables=variables,
            timeout=config.timeout,
            client_type=config.client_type,
            on_result=None if json_output else print_step_result,
            poller=HealthPoller.for_timeout(wait_timeout) if wait else None,
            health_path=config.health_path,
            insecure=ctx.obj["insecure"],
        )
    )

    if json_output:
        _echo_json(report.to_dict())
    else:
        print_report_summary(report)

    if report.aborted or (strict and report.failed):
        sys.exit(1)


@cli.command("list")
@click.pass_context
def list_cmd(ctx: click.Context) -> None:
    """List built-in scenarios."""
    scenarios = list_scenarios()
    if ctx.obj["json_output"]:
        _echo_json(
            [
                {"name": s.name, "description": s.description, "steps": len(s.steps)}
                for s in scenarios
            ]
        )
    else:
        print_scenario_list(scenarios)


@cli.command()
@click.argument("scenario")
@click.pass_context
def show(ctx: click.Context, scenario: str) -> None:
    """Show the steps of a scenario."""
    try:
        loaded = resolve_scenario(scenario)
    except ShopcheckError as e:
        _fail(e)

    if ctx.obj["json_output"]:
        _echo_json(
            {
                "name": loaded.name,
                "description": loaded.description,
                "variables": loaded.variables,
                "steps": [
                    {
                        "name": step.name,
                        "method": step.method,
                        "path": step.path,
                        "expect": {
                            "status": step.expect.status,
                            "failure": step.expect.failure,
                        },
                        "capture": step.capture,
                        "auth": step.auth,
                        "client_type": step.client_type,
                        "foreach": step.foreach,
                    }
                    for step in loaded.steps
                ],
            }
        )
    else:
        print_scenario_detail(loaded)


@cli.command("parse-url")
@click.argument("url")
@click.option("--scheme", help="App URL scheme (default from config: ecommerceshop)")
@click.pass_context
def parse_url(ctx: click.Context, url: str, scheme: str | None) -> None:
    """Classify a payment return URL."""
    handler = PaymentReturnHandler(scheme or ctx.obj["config"].return_scheme)
    result = handler.handle(url)
    if result is None:
        print_error(
            f"Not a payment return URL for scheme '{handler.scheme}': {url}",
            hint="Pass --scheme to parse URLs of another app scheme.",
        )
        sys.exit(1)

    if ctx.obj["json_output"]:
        _echo_json(result.to_dict())
    else:
        print_payment_result(url, result)


@cli.command()
@click.option("--wait-timeout", type=float, default=30.0, help="Seconds to wait")
@click.option(
    "--interval",
    type=click.FloatRange(min=0, min_open=True),
    default=1.0,
    help="Seconds between attempts",
)
@click.pass_context
def wait(ctx: click.Context, wait_timeout: float, interval: float) -> None:
    """Wait until the server answers."""
    config = ctx.obj["config"]
    poller = HealthPoller.for_timeout(wait_timeout, interval_seconds=interval)
    result = asyncio.run(
        poller.wait_for_healthy(
            config.server, path=config.health_path, insecure=ctx.obj["insecure"]
        )
    )

    if ctx.obj["json_output"]:
        _echo_json(
            {
                "healthy": result.healthy,
                "status_code": result.status_code,
                "attempts": result.attempts,
                "elapsed_seconds": round(result.elapsed_seconds, 2),
                "error": result.error,
            }
        )
    else:
        print_health_result(config.server, result)

    if not result.healthy:
        sys.exit(1)


@cli.group()
def webhooks() -> None:
    """Inspect payment processor webhooks (read-only)."""
    pass


@webhooks.command("status")
@click.option("--secret-key", help="Payment processor secret key")
@click.option("--limit", type=int, default=10, help="Number of recent events")
@click.pass_context
def webhooks_status(ctx: click.Context, secret_key: str | None, limit: int) -> None:
    """Show webhook endpoints, recent payment events and key presence."""
    config = ctx.obj["config"]
    key = get_secret(PAYMENT_SECRET_KEY, secret_key)
    if not key:
        print_error(
            "Payment secret key not configured",
            hint=(
                f"Set {SECRET_ENV_VARS[PAYMENT_SECRET_KEY]} or run: "
                f"shopcheck secrets set {PAYMENT_SECRET_KEY}"
            ),
        )
        sys.exit(1)

    async def _status() -> Any:
        async with PaymentProcessorClient(
            key, base_url=config.payment_api_url, timeout=config.timeout
        ) as client:
            return await collect_webhook_status(
                client,
                webhook_secret_configured=get_secret(PAYMENT_WEBHOOK_SECRET) is not None,
                event_limit=limit,
            )

    try:
        status = asyncio.run(_status())
    except ShopcheckError as e:
        _fail(e)

    if ctx.obj["json_output"]:
        _echo_json(status.to_dict())
    else:
        print_webhook_status(status)


@cli.group()
def repair() -> None:
    """Repair BaaS tables directly (service key required)."""
    pass


def _baas_client(ctx: click.Context, service_key: str | None) -> BaasAdminClient:
    config = ctx.obj["config"]
    if not config.baas_url:
        print_error("BaaS URL not configured", hint="Run: shopcheck config set baas_url <url>")
        sys.exit(1)
    key = get_secret(BAAS_SERVICE_KEY, service_key)
    if not key:
        print_error(
            "BaaS service key not configured",
            hint=(
                f"Set {SECRET_ENV_VARS[BAAS_SERVICE_KEY]} or run: "
                f"shopcheck secrets set {BAAS_SERVICE_KEY}"
            ),
        )
        sys.exit(1)
    return BaasAdminClient(config.baas_url, key, timeout=config.timeout)


@repair.command("profiles")
@click.option("--dry-run", is_flag=True, help="Only list users without a profile")
@click.option("--service-key", help="BaaS service key")
@click.pass_context
def repair_profiles_cmd(ctx: click.Context, dry_run: bool, service_key: str | None) -> None:
    """Create missing user_profiles rows."""
    client = _baas_client(ctx, service_key)

    async def _repair() -> Any:
        async with client:
            return await repair_profiles(client, dry_run=dry_run)

    try:
        report = asyncio.run(_repair())
    except ShopcheckError as e:
        _fail(e)

    if ctx.obj["json_output"]:
        _echo_json(report.to_dict())
    else:
        print_repair_report(report)

    if report.failures:
        sys.exit(1)


@repair.command("check-user")
@click.argument("user_id")
@click.option("--no-fix", is_flag=True, help="Do not create a missing profile")
@click.option("--service-key", help="BaaS service key")
@click.pass_context
def repair_check_user(
    ctx: click.Context, user_id: str, no_fix: bool, service_key: str | None
) -> None:
    """Show a user's auth record and profile row."""
    client = _baas_client(ctx, service_key)

    async def _check() -> Any:
        async with client:
            return await check_user(client, user_id, fix=not no_fix)

    try:
        result = asyncio.run(_check())
    except ShopcheckError as e:
        _fail(e)

    if ctx.obj["json_output"]:
        _echo_json(
            {
                "id": result.user.id,
                "email": result.user.email,
                "metadata": result.user.metadata,
                "profile": result.profile,
                "created": result.created,
            }
        )
    else:
        print_user_check(result)


@cli.group()
def secrets() -> None:
    """Manage stored keys."""
    pass


@secrets.command("set")
@click.argument("name", type=click.Choice(list(SECRET_ENV_VARS)))
@click.option("--value", help="Secret value (prompted when omitted)")
def secrets_set(name: str, value: str | None) -> None:
    """Store a key under ~/.shopcheck/secrets/."""
    if value is None:
        value = click.prompt(name, hide_input=True)
    save_secret(name, value)
    click.echo(f"✓ Saved {name}")


@secrets.command("show")
def secrets_show() -> None:
    """Show which keys are available (masked)."""
    for name, env_var in SECRET_ENV_VARS.items():
        click.echo(f"{name}: {mask(get_secret(name))}  (env: {env_var})")


@cli.group()
def config() -> None:
    """Manage configuration."""
    pass


@config.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show effective configuration and where each value comes from."""
    loaded = ctx.obj["config"]
    if ctx.obj["json_output"]:
        _echo_json(
            {
                key: {"value": value, "source": loaded.get_source(key)}
                for key, value in loaded.to_dict().items()
            }
        )
    else:
        print_config(loaded)


@config.command("set")
@click.argument("key", type=click.Choice(CONFIG_KEYS))
@click.argument("value")
def config_set(key: str, value: str) -> None:
    """Set a configuration value in ~/.shopcheck/config.yaml."""
    try:
        save_config(key, value)
    except ValueError:
        print_error(f"Invalid value for {key}: {value}")
        sys.exit(1)
    click.echo(f"✓ {key} = {value}")


@config.command("unset")
@click.argument("key", type=click.Choice(CONFIG_KEYS))
def config_unset(key: str) -> None:
    """Remove a configuration value."""
    if unset_config(key):
        click.echo(f"✓ Removed {key}")
    else:
        click.echo(f"{key} was not set")


@cli.command()
def version() -> None:
    """Show version information."""
    click.echo(f"shopcheck version {__version__}")


def main() -> None:
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
