"""Tests for error classification and message resolution."""

import logging

import pytest

from prism.error_handling import (
    ErrorCategory,
    ErrorResolver,
    ErrorSeverity,
    PrismError,
    ServerError,
    SessionError,
    TransportError,
    resolve_error_message,
)


def test_resolves_nested_user_message():
    failure = {"response": {"data": {"data": {"userMessage": "quota exceeded"}}}}

    assert resolve_error_message(failure, "Training failed") == "quota exceeded"


def test_resolves_transport_message():
    assert resolve_error_message({"message": "Network Error"}, "Upload failed") == "Network Error"


def test_falls_back_to_default():
    assert resolve_error_message({}, "Upload failed") == "Upload failed"
    assert resolve_error_message(None, "Upload failed") == "Upload failed"


@pytest.mark.parametrize(
    "data,expected",
    [
        (
            {"message": "top", "data": {"userMessage": "user", "message": "inner"}, "error": "e"},
            "top",
        ),
        ({"data": {"userMessage": "user", "message": "inner"}, "error": "e"}, "user"),
        ({"data": {"message": "inner"}, "error": "e"}, "inner"),
        ({"error": "Bad Request"}, "Bad Request"),
        ({"message": "   ", "error": "Bad Request"}, "Bad Request"),
    ],
)
def test_candidates_are_tried_in_order(data, expected):
    failure = {"response": {"data": data}, "message": "transport"}

    assert ErrorResolver().resolve(failure) == expected


def test_transport_message_used_when_body_has_nothing():
    failure = {"response": {"data": {"success": False}}, "message": "timeout of 30000ms exceeded"}

    assert ErrorResolver().resolve(failure) == "timeout of 30000ms exceeded"


def test_server_error_payload_is_walked():
    error = ServerError(400, {"success": False, "message": "Invalid CSV header"})

    assert ErrorResolver("Upload failed").resolve(error) == "Invalid CSV header"
    assert error.category == ErrorCategory.SERVER
    assert error.severity == ErrorSeverity.MEDIUM


def test_server_error_without_body_uses_context_default():
    error = ServerError(502)

    assert error.message == "Request failed with status code 502"
    assert ErrorResolver("Training failed").resolve(error) == "Training failed"
    assert error.severity == ErrorSeverity.HIGH


def test_server_error_explicit_message_is_a_candidate():
    error = ServerError(200, {}, message="Login response did not include a token")

    assert ErrorResolver().resolve(error) == "Login response did not include a token"


def test_plain_exception_uses_its_string():
    assert ErrorResolver("Prediction failed").resolve(ValueError("bad value")) == "bad value"
    assert ErrorResolver("Prediction failed").resolve(ValueError()) == "Prediction failed"


def test_transport_error_is_classified():
    assert TransportError("Network Error").category == ErrorCategory.NETWORK
    timed_out = TransportError("Request timed out", original_error=TimeoutError("timeout"))
    assert timed_out.category == ErrorCategory.TIMEOUT


def test_prism_error_auto_classification():
    error = PrismError("failed", original_error=ConnectionError("connect refused"))

    assert error.category == ErrorCategory.NETWORK
    assert error.get_user_message() == "failed"


def test_session_error_has_default_message():
    assert SessionError(401).message == "Your session has expired. Please sign in again."


def test_report_logs_by_severity(caplog):
    resolver = ErrorResolver()

    with caplog.at_level(logging.INFO, logger="prism.error_handling"):
        resolver.report(ServerError(500, {"message": "boom"}))
        resolver.report(TransportError("Network Error"))

    levels = [record.levelno for record in caplog.records]
    assert levels == [logging.ERROR, logging.WARNING]
    assert "[server] boom" in caplog.records[0].getMessage()
