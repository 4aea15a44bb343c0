"""Unit tests for structlog configuration."""

from infrastructure.logging import REDACTED, redact_credentials


class TestRedactCredentials:
    """Tests for the credential masking processor."""

    def test_masks_data_source_keys(self):
        event = redact_credentials(
            None,
            "info",
            {"event": "client_created", "service_key": "secret", "url": "https://dsA"},
        )

        assert event["service_key"] == REDACTED
        assert event["url"] == "https://dsA"

    def test_leaves_missing_values_alone(self):
        event = redact_credentials(None, "info", {"event": "x", "anon_key": None})

        assert event["anon_key"] is None

    def test_event_without_sensitive_keys_is_unchanged(self):
        event = {"event": "data_source_pool_exhausted", "tenant_id": "T1"}

        assert redact_credentials(None, "warning", dict(event)) == event
