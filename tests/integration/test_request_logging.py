"""Request logging middleware."""
import logging

import pytest
from fastapi.testclient import TestClient


@pytest.mark.integration
class TestRequestLogging:
    def test_logs_start_and_completion_with_request_id(self, api_client: TestClient, caplog):
        logger = logging.getLogger("portal")
        previous = logger.level
        logger.setLevel(logging.DEBUG)
        logger.addHandler(caplog.handler)
        try:
            response = api_client.get("/health", headers={"x-request-id": "req-42"})
        finally:
            logger.removeHandler(caplog.handler)
            logger.setLevel(previous)

        messages = [r.getMessage() for r in caplog.records]
        assert response.headers["x-request-id"] == "req-42"
        assert "GET /health started" in messages
        assert any(m.startswith("GET /health -> 200") for m in messages)
