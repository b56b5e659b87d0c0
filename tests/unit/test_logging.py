"""Tests for structured logging configuration.

Tests the custom processors, flow context binding and both output modes.
"""

import pytest
import structlog

from iap_orchestrator.logging_config import (
    REDACTED,
    add_app_context,
    configure_logging,
    drop_debug_unless_enabled,
    flow_context,
    get_logger,
    is_debug_mode,
    redact_secrets,
)


@pytest.fixture(autouse=True)
def cleanup_context():
    """Ensure context is cleared before and after each test."""
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()


class TestProcessors:
    """Test the custom structlog processors."""

    def test_app_context(self):
        assert add_app_context(None, "info", {})["app"] == "iap-orchestrator"

    def test_secrets_redacted(self):
        event = redact_secrets(None, "info", {
            "event": "orchestrator_created",
            "shared_secret": "abc123",
            "password": "abc123",
            "receipt_data": "TUlJVE...",
            "product_id": "com.example.app.premium",
        })

        assert event["shared_secret"] == REDACTED
        assert event["password"] == REDACTED
        assert event["receipt_data"] == REDACTED
        assert event["product_id"] == "com.example.app.premium"

    def test_empty_secret_left_alone(self):
        assert redact_secrets(None, "info", {"shared_secret": None})["shared_secret"] is None

    def test_debug_dropped_outside_debug_mode(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "INFO")
        assert not is_debug_mode()
        with pytest.raises(structlog.DropEvent):
            drop_debug_unless_enabled(None, "debug", {})
        assert drop_debug_unless_enabled(None, "info", {"event": "x"}) == {"event": "x"}

    def test_debug_kept_in_debug_mode(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert is_debug_mode()
        assert drop_debug_unless_enabled(None, "debug", {"event": "x"}) == {"event": "x"}


class TestFlowContext:
    """Test flow context binding."""

    def test_binds_and_restores(self):
        with flow_context("purchase", product_id="com.example.app.premium") as flow_id:
            bound = structlog.contextvars.get_contextvars()
            assert bound == {
                "flow": "purchase",
                "flow_id": flow_id,
                "product_id": "com.example.app.premium",
            }

        assert structlog.contextvars.get_contextvars() == {}

    def test_restored_on_exception(self):
        with pytest.raises(RuntimeError):
            with flow_context("restore"):
                raise RuntimeError("queue exploded")

        assert structlog.contextvars.get_contextvars() == {}

    def test_nested_flow_keeps_outer_id(self):
        with flow_context("verify_purchase", product_id="a") as outer_id:
            with flow_context("verify_receipt") as inner_id:
                bound = structlog.contextvars.get_contextvars()
                assert inner_id == outer_id
                assert bound["flow"] == "verify_purchase"
                assert bound["product_id"] == "a"
            assert structlog.contextvars.get_contextvars()["flow_id"] == outer_id

    def test_flow_ids_differ(self):
        with flow_context("purchase") as first:
            pass
        with flow_context("purchase") as second:
            pass
        assert first != second


class TestConfiguration:
    """Test configure_logging in both output modes."""

    @pytest.mark.parametrize("json_format", [True, False])
    def test_configure_and_log(self, json_format):
        configure_logging(log_level="WARNING", json_format=json_format)
        logger = get_logger("test.configure")

        with flow_context("verify_receipt"):
            logger.warning("receipt_verification_result", service="sandbox", success=False)
        logger.debug("never_shown")

    def test_exception_logging(self):
        logger = get_logger("test.exceptions")
        try:
            raise RuntimeError("observer broken")
        except RuntimeError as e:
            logger.error("network_activity_observer_failed", error=str(e), exc_info=True)
