"""
Tests for the health endpoints.
"""

from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient

from app.main import app


class TestReadiness:
    def test_failed_database_check_is_generic(self):
        session_maker = MagicMock(side_effect=OSError("could not connect to db.internal:5432"))

        with patch("app.main.async_session_maker", session_maker):
            response = TestClient(app).get("/ready")

        assert response.status_code == 503
        assert response.json() == {"detail": {"status": "not ready"}}
        assert "db.internal" not in response.text

    def test_health(self):
        response = TestClient(app).get("/health")
        assert response.json() == {"status": "healthy"}
