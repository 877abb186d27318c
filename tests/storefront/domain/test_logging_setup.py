"""Tests for log level selection and request-scoped log context."""

import structlog

from storefront.utils.logging import bind_request_context, clear_request_context, get_log_level


class TestLogLevel:
    def test_test_environment_is_quiet(self, monkeypatch):
        monkeypatch.setenv("PROTEAN_ENV", "test")
        monkeypatch.delenv("STOREFRONT_LOG_LEVEL", raising=False)
        assert get_log_level() == "WARNING"

    def test_explicit_level_wins(self, monkeypatch):
        monkeypatch.setenv("PROTEAN_ENV", "production")
        monkeypatch.setenv("STOREFRONT_LOG_LEVEL", "debug")
        assert get_log_level() == "DEBUG"


class TestRequestContext:
    def test_bind_and_clear(self):
        request_id = bind_request_context("GET", "/orders", request_id="req-1")
        assert request_id == "req-1"
        assert structlog.contextvars.get_contextvars() == {
            "request_id": "req-1",
            "method": "GET",
            "path": "/orders",
        }

        clear_request_context()
        assert structlog.contextvars.get_contextvars() == {}

    def test_request_id_is_generated(self):
        request_id = bind_request_context("POST", "/coupons/validate")
        assert len(request_id) == 32
        clear_request_context()
