"""Integration tests for the correlation ID middleware."""

import uuid

import pytest
from structlog.testing import capture_logs

pytestmark = pytest.mark.integration


class TestCorrelationId:
    def test_generated_when_absent(self, api_client):
        response = api_client.get("/health")
        cid = response["X-Request-ID"]
        assert uuid.UUID(cid).version == 4

    def test_echoes_incoming_header(self, api_client_with_correlation):
        client, cid = api_client_with_correlation
        response = client.get("/api/v1/products/")
        assert response["X-Request-ID"] == cid

    def test_bound_to_log_lines(self, api_client_with_correlation):
        client, cid = api_client_with_correlation
        with capture_logs() as logs:
            client.get("/api/v1/products/")

        finished = [entry for entry in logs if entry["event"] == "request.finished"]
        assert finished
        assert finished[0]["status_code"] == 200
