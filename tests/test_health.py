"""Tests for health endpoints."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from app.core.config import settings
from app.main import app


@pytest.fixture
def client(mock_db_session):
    """TestClient without lifespan; dependencies are set on app.state per test."""
    with patch("app.routes.health.AsyncSessionLocal", return_value=mock_db_session):
        yield TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def minio():
    client = MagicMock()
    client.bucket_exists.return_value = True
    return client


def _ready(client, minio, temporal):
    app.state.minio = minio
    app.state.temporal = temporal
    return client.get("/health/ready")


def test_liveness(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


class TestReadiness:
    def test_all_dependencies_up(self, client, minio):
        response = _ready(client, minio, MagicMock())

        assert response.status_code == 200
        assert response.json() == {
            "status": "ok",
            "checks": {"database": "ok", "storage": "ok", "temporal": "ok"},
        }
        minio.bucket_exists.assert_called_once_with(settings.S3_BUCKET_GENERATED)

    def test_without_temporal_still_ready_but_degraded(self, client, minio):
        response = _ready(client, minio, None)

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
        assert response.json()["checks"]["temporal"] == "not connected"

    def test_database_down(self, client, minio, mock_db_session):
        mock_db_session.execute = AsyncMock(side_effect=Exception("Connection refused"))

        response = _ready(client, minio, MagicMock())

        assert response.status_code == 503
        assert response.json()["status"] == "unavailable"
        assert response.json()["checks"]["database"] == "error: Connection refused"

    def test_storage_not_configured(self, client):
        response = _ready(client, None, MagicMock())

        assert response.status_code == 503
        assert response.json()["checks"]["storage"] == "not configured"

    def test_generated_bucket_missing(self, client, minio):
        minio.bucket_exists.return_value = False

        response = _ready(client, minio, MagicMock())

        assert response.status_code == 503
        assert response.json()["checks"]["storage"] == f"bucket {settings.S3_BUCKET_GENERATED} missing"

    def test_storage_error(self, client, minio):
        minio.bucket_exists.side_effect = RuntimeError("tls handshake failed")

        response = _ready(client, minio, MagicMock())

        assert response.status_code == 503
        assert "tls handshake failed" in response.json()["checks"]["storage"]
