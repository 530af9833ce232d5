"""Account scenarios: registration and password change."""

from ..scenario import Expectation, Scenario, Step
from .auth import login_step

MIN_PASSWORD_LENGTH = 6


def build_change_password(
    rejection_status: int = 400,
    min_length: int = MIN_PASSWORD_LENGTH,
) -> Scenario:
    """Register a fresh user, change its password, then try invalid changes.

    The e-mail is derived from ``run_id`` so reruns do not hit the unique
    e-mail constraint of the user table.

    Args:
        rejection_status: Status the server uses for password validation errors
        min_length: Minimum password length enforced by the server
    """
    return Scenario(
        name="change-password",
        description="Password change flow with its three validation errors",
        variables={
            "email": "test-change-password-{{ run_id }}@example.com",
            "password": "password123",
            "new_password": "newPassword456!",
            "short_password": "1" * (min_length - 1),
        },
        steps=[
            Step(
                name="Register test user",
                method="POST",
                path="/auth/register",
                body={
                    "mail": "{{ email }}",
                    "password": "{{ password }}",
                    "nom": "Test",
                    "prenom": "User",
                    "age": 25,
                },
                expect=Expectation(status=201),
                show=["user.mail"],
            ),
            login_step("Login"),
            Step(
                name="Change password",
                method="PUT",
                path="/auth/change-password",
                body={"oldPassword": "{{ password }}", "newPassword": "{{ new_password }}"},
                auth="token",
                show=["message"],
            ),
            login_step("Login with new password", password_var="new_password"),
            Step(
                name="Wrong current password is rejected",
                method="PUT",
                path="/auth/change-password",
                body={"oldPassword": "wrongPassword", "newPassword": "anotherPassword123"},
                auth="token",
                expect=Expectation.rejected(rejection_status),
            ),
            Step(
                name="Too short new password is rejected",
                method="PUT",
                path="/auth/change-password",
                body={"oldPassword": "{{ new_password }}", "newPassword": "{{ short_password }}"},
                auth="token",
                expect=Expectation.rejected(rejection_status),
            ),
            Step(
                name="Unchanged password is rejected",
                method="PUT",
                path="/auth/change-password",
                body={"oldPassword": "{{ new_password }}", "newPassword": "{{ new_password }}"},
                auth="token",
                expect=Expectation.rejected(rejection_status),
            ),
        ],
    )
