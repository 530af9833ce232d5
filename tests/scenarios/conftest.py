"""Shared fixtures for built-in scenario tests.

Every built-in scenario runs end to end against the in-process mock shop
API, through the same run_scenario() entry point the CLI uses.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import pytest

from shopcheck.runner import ScenarioReport, run_scenario
from shopcheck.scenario import Scenario
from tests.mocks import BASE_URL, MockShopServer


@pytest.fixture
def run_against() -> Callable[..., Awaitable[ScenarioReport]]:
    """Run a scenario against a MockShopServer."""

    async def _run(
        scenario: Scenario,
        server: MockShopServer,
        variables: dict | None = None,
    ) -> ScenarioReport:
        return await run_scenario(
            scenario,
            BASE_URL,
            variables=variables,
            transport=server.get_transport(),
        )

    return _run
