"""CLI command tests using click's CliRunner."""

import functools
import json
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from shopcheck.main import cli
from shopcheck.processor import PaymentProcessorClient
from shopcheck.runner import ScenarioReport, run_scenario

from tests.mocks import BASE_URL, MockShopServer


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def _against(transport):
    """Patch the runner entry point so `run` talks to an in-process transport."""
    runner_with_transport = functools.partial(run_scenario, transport=transport)
    return patch("shopcheck.main.run_scenario", runner_with_transport)


@pytest.mark.cli_unit
class TestScenarioCommands:
    """Tests for list and show."""

    def test_list(self, runner, isolated_home):
        result = runner.invoke(cli, ["list"])
        assert result.exit_code == 0
        assert "change-password" in result.output
        assert "admin-products" in result.output

    def test_list_json(self, runner, isolated_home):
        result = runner.invoke(cli, ["--json", "list"])
        assert result.exit_code == 0
        names = [s["name"] for s in json.loads(result.stdout)]
        assert "auth" in names

    def test_show(self, runner, isolated_home):
        result = runner.invoke(cli, ["show", "change-password"])
        assert result.exit_code == 0
        assert "Scenario: change-password" in result.output
        assert "PUT /auth/change-password" in result.output

    def test_show_unknown(self, runner, isolated_home):
        result = runner.invoke(cli, ["show", "nope"])
        assert result.exit_code == 1


@pytest.mark.cli_unit
class TestRunCommand:
    """Tests for run."""

    def test_run_prints_each_step(self, runner, isolated_home):
        with _against(MockShopServer().get_transport()):
            result = runner.invoke(cli, ["-s", BASE_URL, "run", "catalog"])

        assert result.exit_code == 0, result.output
        assert "✓ API reachable" in result.output
        assert "catalog: 2/2 steps passed" in result.output

    def test_expected_failures_are_marked(self, runner, isolated_home):
        with _against(MockShopServer().get_transport()):
            result = runner.invoke(cli, ["-s", BASE_URL, "run", "change-password"])

        assert result.exit_code == 0, result.output
        assert "(expected)" in result.output

    def test_run_json(self, runner, isolated_home):
        with _against(MockShopServer().get_transport()):
            result = runner.invoke(cli, ["-s", BASE_URL, "--json", "run", "catalog"])

        data = json.loads(result.stdout)
        assert data["scenario"] == "catalog"
        assert data["failed"] == 0
        assert [s["status_code"] for s in data["steps"]] == [200, 200]

    def test_connection_refused_aborts(self, runner, isolated_home, refused_transport):
        with _against(refused_transport):
            result = runner.invoke(cli, ["-s", BASE_URL, "run", "catalog"])

        assert result.exit_code == 1
        assert "Run aborted" in result.output
        assert "start" in result.output.lower()

    def test_strict_fails_on_failed_step(self, runner, isolated_home, tmp_path):
        scenario_file = tmp_path / "missing-route.yaml"
        scenario_file.write_text(
            "steps:\n"
            "  - name: Unknown route\n"
            "    method: GET\n"
            "    path: /does-not-exist\n"
        )
        args = ["-s", BASE_URL, "run", str(scenario_file)]
        with _against(MockShopServer().get_transport()):
            lenient = runner.invoke(cli, args)
        with _against(MockShopServer().get_transport()):
            strict = runner.invoke(cli, [*args, "--strict"])

        assert lenient.exit_code == 0
        assert "✗ Unknown route" in lenient.output
        assert strict.exit_code == 1

    def test_unresolvable_variable_fails_cleanly(self, runner, isolated_home, tmp_path):
        scenario_file = tmp_path / "broken-vars.yaml"
        scenario_file.write_text(
            "variables:\n"
            "  email: '{{ nope }}'\n"
            "steps:\n"
            "  - name: Catalog\n"
            "    method: GET\n"
            "    path: /products\n"
        )
        with _against(MockShopServer().get_transport()):
            result = runner.invoke(cli, ["-s", BASE_URL, "run", str(scenario_file)])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "Variable 'nope' is not set" in result.output

    def test_insecure_is_passed_to_the_run(self, runner, isolated_home):
        fake_run = AsyncMock(return_value=ScenarioReport(scenario="catalog"))
        with patch("shopcheck.main.run_scenario", fake_run):
            result = runner.invoke(cli, ["-k", "run", "catalog"])

        assert result.exit_code == 0, result.output
        assert fake_run.call_args.kwargs["insecure"] is True

    def test_invalid_variable(self, runner, isolated_home):
        result = runner.invoke(cli, ["run", "catalog", "-V", "broken"])
        assert result.exit_code == 1
        assert "KEY=VALUE" in result.output

    def test_scenario_file(self, runner, isolated_home, tmp_path):
        scenario_file = tmp_path / "categories-only.yaml"
        scenario_file.write_text(
            "name: categories-only\n"
            "steps:\n"
            "  - name: List categories\n"
            "    method: GET\n"
            "    path: /products/categories\n"
        )
        with _against(MockShopServer().get_transport()):
            result = runner.invoke(cli, ["-s", BASE_URL, "run", str(scenario_file)])

        assert result.exit_code == 0, result.output
        assert "categories-only: 1/1 steps passed" in result.output


@pytest.mark.cli_unit
class TestParseUrlCommand:
    """Tests for parse-url."""

    def test_success(self, runner, isolated_home):
        result = runner.invoke(
            cli, ["parse-url", "ecommerceshop://payment/success?session_id=cs_123"]
        )
        assert result.exit_code == 0
        assert "Result: success" in result.output
        assert "Session ID: cs_123" in result.output

    def test_json(self, runner, isolated_home):
        result = runner.invoke(cli, ["--json", "parse-url", "ecommerceshop://payment/cancel"])
        assert json.loads(result.stdout) == {"type": "cancelled"}

    def test_other_scheme_is_ignored(self, runner, isolated_home):
        result = runner.invoke(cli, ["parse-url", "https://example.com/success"])
        assert result.exit_code == 1

    def test_custom_scheme(self, runner, isolated_home):
        result = runner.invoke(
            cli, ["parse-url", "--scheme", "myshop", "myshop://payment/cancel"]
        )
        assert result.exit_code == 0
        assert "Result: cancelled" in result.output


@pytest.mark.cli_unit
class TestWaitCommand:
    """Tests for wait."""

    @pytest.mark.parametrize("interval", ["0", "-1"])
    def test_interval_must_be_positive(self, runner, isolated_home, interval):
        result = runner.invoke(cli, ["wait", "--wait-timeout", "1", "--interval", interval])
        assert result.exit_code == 2
        assert "--interval" in result.output


@pytest.mark.cli_unit
class TestWebhooksCommand:
    """Tests for webhooks status."""

    def test_missing_key(self, runner, isolated_home):
        result = runner.invoke(cli, ["webhooks", "status"])
        assert result.exit_code == 1
        assert "SHOPCHECK_PAYMENT_SECRET_KEY" in result.output

    def test_no_endpoint(self, runner, isolated_home, json_transport):
        transport = json_transport({("GET", "/v1/webhook_endpoints"): {"data": []}})
        client = functools.partial(PaymentProcessorClient, transport=transport)

        with patch("shopcheck.main.PaymentProcessorClient", client):
            result = runner.invoke(cli, ["webhooks", "status", "--secret-key", "sk_test_1"])

        assert result.exit_code == 0, result.output
        assert "No webhook endpoint configured" in result.output
        assert transport.requests[0].headers["authorization"] == "Bearer sk_test_1"


@pytest.mark.cli_unit
class TestRepairCommand:
    """Tests for repair preconditions."""

    def test_requires_baas_url(self, runner, isolated_home):
        result = runner.invoke(cli, ["repair", "profiles", "--service-key", "k"])
        assert result.exit_code == 1
        assert "baas_url" in result.output

    def test_requires_service_key(self, runner, isolated_home, monkeypatch):
        monkeypatch.setenv("SHOPCHECK_BAAS_URL", "http://baas.test")
        result = runner.invoke(cli, ["repair", "check-user", "u1"])
        assert result.exit_code == 1
        assert "SHOPCHECK_BAAS_SERVICE_KEY" in result.output


@pytest.mark.cli_unit
class TestConfigAndSecrets:
    """Tests for config and secrets commands."""

    def test_config_set_show_unset(self, runner, isolated_home):
        result = runner.invoke(cli, ["config", "set", "server", "http://staging.test/api"])
        assert result.exit_code == 0

        result = runner.invoke(cli, ["config", "show"])
        assert "server: http://staging.test/api  [config file]" in result.output

        result = runner.invoke(cli, ["config", "unset", "server"])
        assert "Removed server" in result.output
        result = runner.invoke(cli, ["config", "unset", "server"])
        assert "server was not set" in result.output

    def test_config_set_invalid_timeout(self, runner, isolated_home):
        result = runner.invoke(cli, ["config", "set", "timeout", "soon"])
        assert result.exit_code == 1

    def test_config_set_unknown_key(self, runner, isolated_home):
        result = runner.invoke(cli, ["config", "set", "colour", "blue"])
        assert result.exit_code == 2

    def test_secrets_set_and_show(self, runner, isolated_home):
        result = runner.invoke(
            cli, ["secrets", "set", "payment-secret-key", "--value", "sk_test_1234567890"]
        )
        assert result.exit_code == 0

        result = runner.invoke(cli, ["secrets", "show"])
        assert "payment-secret-key: sk_t...7890" in result.output
        assert "baas-service-key: (not set)" in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["version"])
        assert result.exit_code == 0
        assert "shopcheck version" in result.output
