"""Tests for the error taxonomy and resolver envelopes"""

import pytest

from jira_calendar.utils.errors import (
    CalendarError,
    ErrorCode,
    InvalidDateRangeError,
    JiraAPIError,
    error_envelope,
    to_error_payload,
)


def test_jira_api_error_codes():
    assert JiraAPIError(429).code is ErrorCode.RATE_LIMIT_ERROR
    assert JiraAPIError(500).code is ErrorCode.NETWORK_ERROR
    assert "HTTP 404" in JiraAPIError(404).message


def test_transport_failure_reported_under_operation_code():
    payload = to_error_payload(JiraAPIError(503), ErrorCode.FETCH_PROJECTS_ERROR)

    assert payload == {
        "success": False,
        "error": "Jira API request failed: HTTP 503",
        "errorCode": "FETCH_PROJECTS_ERROR",
        "retryable": True,
        "status": 503,
    }


def test_rate_limit_keeps_its_code():
    payload = to_error_payload(JiraAPIError(429), ErrorCode.FETCH_VISITS_ERROR)

    assert payload["errorCode"] == "RATE_LIMIT_ERROR"
    assert payload["retryable"] is True


def test_specific_codes_are_kept():
    payload = to_error_payload(
        InvalidDateRangeError("reversed"), ErrorCode.FETCH_VISITS_ERROR
    )

    assert payload["errorCode"] == "INVALID_DATE_RANGE"
    assert payload["retryable"] is False
    assert "status" not in payload


def test_unexpected_exception_uses_default_code():
    payload = to_error_payload(KeyError("x"), ErrorCode.SAVE_SETTINGS_ERROR)

    assert payload["success"] is False
    assert payload["errorCode"] == "SAVE_SETTINGS_ERROR"


@pytest.mark.asyncio
async def test_error_envelope_decorator():
    @error_envelope("load things", ErrorCode.LOAD_SETTINGS_ERROR)
    async def failing() -> dict:
        raise CalendarError("disk on fire")

    @error_envelope("load things", ErrorCode.LOAD_SETTINGS_ERROR)
    async def working() -> dict:
        return {"success": True}

    assert await working() == {"success": True}
    assert await failing() == {
        "success": False,
        "error": "disk on fire",
        "errorCode": "LOAD_SETTINGS_ERROR",
        "retryable": False,
    }
