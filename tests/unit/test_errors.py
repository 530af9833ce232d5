"""Unit tests for step outcome classification."""

import pytest

from shopcheck.errors import (
    ApiClientError,
    MissingVariableError,
    ShopcheckError,
    StepStatus,
    classify,
)
from shopcheck.scenario import Expectation


class TestStepStatus:
    """Tests for StepStatus."""

    def test_expected_failure_counts_as_pass(self):
        assert StepStatus.PASSED.ok is True
        assert StepStatus.EXPECTED_FAILURE.ok is True

    @pytest.mark.parametrize(
        "status",
        [StepStatus.FAILED, StepStatus.UNEXPECTED_SUCCESS, StepStatus.ABORTED],
    )
    def test_failures_are_not_ok(self, status):
        assert status.ok is False

    def test_value_is_serializable(self):
        assert StepStatus.UNEXPECTED_SUCCESS.value == "unexpected_success"


class TestClassifyPositive:
    """Steps that expect success."""

    def test_matching_status_passes(self):
        status, detail = classify(Expectation(status=200), 200)
        assert status is StepStatus.PASSED
        assert detail == "HTTP 200"

    def test_created_status(self):
        status, _ = classify(Expectation(status=201), 201)
        assert status is StepStatus.PASSED

    def test_other_2xx_fails_exact_expectation(self):
        status, detail = classify(Expectation(status=201), 200)
        assert status is StepStatus.FAILED
        assert "expected HTTP 201, got 200" in detail

    def test_any_success_accepts_2xx(self):
        status, _ = classify(Expectation(status=None), 204)
        assert status is StepStatus.PASSED

    def test_any_success_rejects_4xx(self):
        status, detail = classify(Expectation(status=None), 404, "Not found")
        assert status is StepStatus.FAILED
        assert detail == "expected 2xx, got 404: Not found"

    def test_error_response_fails_with_server_message(self):
        status, detail = classify(Expectation(), 401, "Invalid login credentials")
        assert status is StepStatus.FAILED
        assert "401" in detail
        assert "Invalid login credentials" in detail

    def test_message_contains_mismatch(self):
        expectation = Expectation(status=200, message_contains="changed")
        status, _ = classify(expectation, 200, "nothing happened")
        assert status is StepStatus.FAILED


class TestClassifyNegative:
    """Steps that expect the server to reject the request."""

    def test_expected_rejection(self):
        status, detail = classify(Expectation.rejected(400), 400, "Password too short")
        assert status is StepStatus.EXPECTED_FAILURE
        assert detail == "rejected with 400: Password too short"

    def test_success_is_unexpected(self):
        status, detail = classify(Expectation.rejected(400), 200)
        assert status is StepStatus.UNEXPECTED_SUCCESS
        assert "request succeeded" in detail

    def test_wrong_error_status_fails(self):
        status, detail = classify(Expectation.rejected(400), 500, "boom")
        assert status is StepStatus.FAILED
        assert "expected HTTP 400, got 500" in detail

    def test_message_must_match_when_given(self):
        expectation = Expectation.rejected(400, message_contains="at least 6")
        ok, _ = classify(expectation, 400, "New password must be at least 6 characters")
        bad, _ = classify(expectation, 400, "Current password is incorrect")
        assert ok is StepStatus.EXPECTED_FAILURE
        assert bad is StepStatus.FAILED

    def test_rejected_defaults_to_400(self):
        expectation = Expectation.rejected()
        assert expectation.status == 400
        assert expectation.failure is True


class TestErrors:
    """Tests for the exception types."""

    def test_str_is_message(self):
        error = ShopcheckError("Something broke", hint="Try again")
        assert str(error) == "Something broke"
        assert error.hint == "Try again"

    def test_subclasses_are_catchable_as_base(self):
        with pytest.raises(ShopcheckError):
            raise ApiClientError("Cannot connect", hint="start it")

    def test_missing_variable_carries_name(self):
        error = MissingVariableError("Variable 'token' is not set", variable="token")
        assert error.variable == "token"
