"""
Tests for permanent-vs-transient error classification.
"""

import pytest

from core.error_policy import classify_error
from utils.schemas import ErrorClass


class TestClassifyError:
    @pytest.mark.parametrize("message", [
        "User does not have sufficient permissions for this property.",
        "Request had invalid authentication credentials.",
        "PERMISSION_DENIED",
        "Request had insufficient authentication scopes.",
        "Access Denied",
    ])
    def test_permission_messages_are_permanent(self, message):
        assert classify_error(message) is ErrorClass.PERMANENT

    def test_matching_is_case_insensitive(self):
        assert classify_error("permission_denied on property") is ErrorClass.PERMANENT

    @pytest.mark.parametrize("status_code", [401, 403])
    def test_auth_statuses_are_permanent_regardless_of_text(self, status_code):
        assert classify_error("something odd", status_code) is ErrorClass.PERMANENT

    @pytest.mark.parametrize("message,status_code", [
        ("The service is currently unavailable.", 503),
        ("Exhausted concurrent requests quota.", 429),
        ("Internal error encountered.", 500),
        ("connection reset", None),
        ("", None),
    ])
    def test_everything_else_is_transient(self, message, status_code):
        assert classify_error(message, status_code) is ErrorClass.TRANSIENT

    def test_custom_marker_table(self):
        assert classify_error("property quota exhausted", markers=("quota",)) is ErrorClass.PERMANENT
        assert classify_error("PERMISSION_DENIED", markers=("quota",)) is ErrorClass.TRANSIENT
