"""
Unit tests for logging helpers.
"""
from healthplan_ratios.middleware.logging import (
    add_correlation_id_processor,
    correlation_id,
    redact_sensitive_data,
    redact_sensitive_processor,
)


class TestRedaction:
    """Tests for sensitive field redaction."""

    def test_sensitive_keys_redacted(self):
        """Test secrets are replaced."""
        data = redact_sensitive_data({"database_url": "postgresql://u:p@h/db", "operator_id": "A001"})

        assert data["database_url"] == "[REDACTED]"
        assert data["operator_id"] == "A001"

    def test_nested_redaction(self):
        """Test nested dictionaries and lists are redacted."""
        data = redact_sensitive_data({
            "details": {"api_key": "abc"},
            "items": [{"token": "x"}, "plain"],
        })

        assert data["details"]["api_key"] == "[REDACTED]"
        assert data["items"] == [{"token": "[REDACTED]"}, "plain"]

    def test_sentry_dsn_redacted(self):
        """Test the error-tracking DSN is redacted inside nested lists."""
        data = redact_sensitive_data({"configs": [[{"SENTRY_DSN": "https://k@o.ingest/1"}]]})
        assert data["configs"] == [[{"SENTRY_DSN": "[REDACTED]"}]]

    def test_processor(self):
        """Test the structlog processor redacts event dicts."""
        event = redact_sensitive_processor(None, "info", {"event": "x", "password": "hunter2"})
        assert event["password"] == "[REDACTED]"


class TestCorrelationProcessor:
    """Tests for correlation ID injection."""

    def test_adds_current_id(self):
        """Test the current correlation ID is added to log entries."""
        token = correlation_id.set("req-1")
        try:
            event = add_correlation_id_processor(None, "info", {"event": "x"})
        finally:
            correlation_id.reset(token)

        assert event["correlation_id"] == "req-1"
