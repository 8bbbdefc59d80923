"""Health probes, metrics and structured logging."""

import json
import logging

from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from shared.core import HealthStatus, SecurityFilter, ServiceHealth, StructuredFormatter
from shared.core.logging_config import request_id_var


class TestHealthEndpoints:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "pass"
        assert response.json()["service"] == "commerce-ops"

    def test_live(self, client):
        assert client.get("/health/live").json() == {"status": "alive"}

    def test_ready_reports_each_dependency(self, client):
        response = client.get("/health/ready")
        assert response.status_code in [200, 503]
        checks = response.json()["checks"]
        assert checks["database:connectivity"]["status"] == "pass"
        assert {"provider:stripe", "provider:shippo", "provider:resend"} <= set(checks)

    def test_metrics(self, client):
        body = client.get("/metrics").json()
        assert body["uptime_seconds"] >= 0
        assert "memory_rss_bytes" in body["system"]

    def test_request_ids_are_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-1"})
        assert response.headers["X-Request-ID"] == "req-1"
        assert response.headers["X-Correlation-ID"] == "req-1"

    def test_root_and_info(self, client):
        assert client.get("/").json()["status"] == "running"
        assert client.get("/info").json()["endpoints"]["orders"] == "/orders"


class TestServiceHealth:
    def test_unconfigured_provider_only_warns(self):
        engine = create_engine("sqlite://", poolclass=StaticPool)
        health = ServiceHealth("svc", engine=engine, providers={"shippo": lambda: False})
        checks = health.readiness_checks()
        assert checks["provider:shippo"]["status"] == HealthStatus.WARN
        assert checks["provider:shippo"]["output"] == "shippo is not configured"
        assert health._calculate_overall_status({"a": checks["provider:shippo"]}) == HealthStatus.WARN

    def test_missing_migrations_warn(self):
        engine = create_engine("sqlite://", poolclass=StaticPool)
        health = ServiceHealth("svc", engine=engine)
        assert health._check_migrations()["status"] == HealthStatus.WARN

    def test_failing_check_dominates(self):
        checks = {"a": {"status": HealthStatus.WARN}, "b": {"status": HealthStatus.FAIL}}
        assert ServiceHealth._calculate_overall_status(checks) == HealthStatus.FAIL


def make_record(msg, **extra):
    record = logging.LogRecord("commerce_ops.test", logging.INFO, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestLogging:
    def test_formatter_emits_json_with_trace(self):
        token = request_id_var.set("req-42")
        try:
            record = make_record("Order created", extra_fields={"order_id": 7})
            line = json.loads(StructuredFormatter("commerce-ops", "test", "1.0.0").format(record))
        finally:
            request_id_var.reset(token)
        assert line["message"] == "Order created"
        assert line["service"] == "commerce-ops"
        assert line["environment"] == "test"
        assert line["trace"]["request_id"] == "req-42"
        assert line["custom"] == {"order_id": 7}

    def test_secrets_are_masked_in_messages(self):
        record = make_record("Calling Stripe with sk_test_abc123 and Bearer eyJhbGciOi.x.y")
        SecurityFilter().filter(record)
        message = record.getMessage()
        assert "sk_test_abc123" not in message
        assert "eyJhbGciOi" not in message
        assert "***REDACTED***" in message

    def test_secrets_are_masked_in_extra_fields(self):
        record = make_record("configured", extra_fields={"api_key": "shippo_live_xyz", "nested": {"token": "t"}})
        SecurityFilter().filter(record)
        assert record.extra_fields == {"api_key": "***REDACTED***", "nested": {"token": "***REDACTED***"}}
