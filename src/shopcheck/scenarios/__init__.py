"""Built-in scenarios, looked up by name."""

from typing import Callable

from ..errors import ScenarioNotFoundError
from ..scenario import Scenario
from .account import build_change_password
from .admin import build_admin_products
from .auth import build_auth, build_dashboard_login, build_sessions
from .catalog import build_catalog, build_categories

BUILTIN_SCENARIOS: dict[str, Callable[[], Scenario]] = {
    "auth": build_auth,
    "dashboard-login": build_dashboard_login,
    "change-password": build_change_password,
    "sessions": build_sessions,
    "catalog": build_catalog,
    "categories": build_categories,
    "admin-products": build_admin_products,
}


def get_scenario(name: str) -> Scenario:
    """Build a built-in scenario.

    Raises:
        ScenarioNotFoundError: If no built-in scenario has that name
    """
    try:
        factory = BUILTIN_SCENARIOS[name]
    except KeyError:
        raise ScenarioNotFoundError(
            f"Unknown scenario '{name}'",
            hint=f"Built-in scenarios: {', '.join(BUILTIN_SCENARIOS)}",
        ) from None
    return factory()


def list_scenarios() -> list[Scenario]:
    return [factory() for factory in BUILTIN_SCENARIOS.values()]


__all__ = ["BUILTIN_SCENARIOS", "get_scenario", "list_scenarios"]
