"""Authentication scenarios: login, profile, dashboard access, sessions."""

from typing import Any

from ..scenario import Expectation, Scenario, ScenarioContext, Step

DASHBOARD = "dashboard"


def login_step(
    name: str,
    email_var: str = "email",
    password_var: str = "password",
    token_var: str = "token",
    client_type: str | None = None,
    **kwargs: Any,
) -> Step:
    """POST /auth/login and capture the access token."""
    capture = {token_var: "session.access_token", **kwargs.pop("capture", {})}
    return Step(
        name=name,
        method="POST",
        path="/auth/login",
        body={"mail": f"{{{{ {email_var} }}}}", "password": f"{{{{ {password_var} }}}}"},
        capture=capture,
        client_type=client_type,
        **kwargs,
    )


def build_auth() -> Scenario:
    return Scenario(
        name="auth",
        description="Login, then fetch the profile with and without the dashboard header",
        variables={"email": "test@user.com", "password": "password123"},
        steps=[
            login_step("Login", show=["user.email"]),
            Step(
                name="Fetch profile",
                method="GET",
                path="/users/me",
                auth="token",
            ),
            Step(
                name="Fetch profile as dashboard client",
                method="GET",
                path="/users/me",
                auth="token",
                client_type=DASHBOARD,
            ),
        ],
    )


def build_dashboard_login() -> Scenario:
    return Scenario(
        name="dashboard-login",
        description="Dashboard login of a vendor, then the vendor analytics dashboard",
        variables={"vendor_email": "enzovendeur@test.com", "vendor_password": "password123"},
        steps=[
            login_step(
                "Login as dashboard client",
                email_var="vendor_email",
                password_var="vendor_password",
                client_type=DASHBOARD,
            ),
            Step(
                name="Vendor analytics dashboard",
                method="GET",
                path="/vendor-analytics/my-dashboard",
                auth="token",
                client_type=DASHBOARD,
            ),
        ],
    )


def _tokens_differ(data: Any, context: ScenarioContext) -> str | None:
    if data["session"]["access_token"] == context.get("token1"):
        return "both logins returned the same access token"
    return None


def build_sessions() -> Scenario:
    return Scenario(
        name="sessions",
        description="Two concurrent sessions, logout of one, then token refresh",
        variables={
            "email": "user@example.com",
            "password": "password123",
            "vendor_email": "vendor@example.com",
            "vendor_password": "password123",
        },
        steps=[
            login_step(
                "Login first user (app)",
                token_var="token1",
                capture={"refresh_token": "session.refresh_token"},
            ),
            login_step(
                "Login second user (dashboard)",
                email_var="vendor_email",
                password_var="vendor_password",
                token_var="token2",
                check=_tokens_differ,
            ),
            Step(
                name="Profile with first token",
                method="GET",
                path="/auth/profile",
                auth="token1",
                show=["user.email"],
            ),
            Step(
                name="Profile with second token",
                method="GET",
                path="/auth/profile",
                auth="token2",
                show=["user.email"],
            ),
            Step(
                name="Logout first user",
                method="POST",
                path="/auth/logout",
                body={},
                auth="token1",
            ),
            Step(
                name="Second user still signed in",
                method="GET",
                path="/auth/profile",
                auth="token2",
                show=["user.email"],
            ),
            Step(
                name="Refresh session",
                method="POST",
                path="/auth/refresh",
                body={"refresh_token": "{{ refresh_token }}"},
                capture={"refreshed_token": "session.access_token"},
            ),
            Step(
                name="Profile with refreshed token",
                method="GET",
                path="/auth/profile",
                auth="refreshed_token",
                show=["user.email"],
            ),
            Step(
                name="Refresh without token is rejected",
                method="POST",
                path="/auth/refresh",
                body={},
                expect=Expectation.rejected(400),
            ),
        ],
    )
