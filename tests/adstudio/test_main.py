from fastapi.testclient import TestClient

from adstudio.config import settings
from adstudio.main import app

client = TestClient(app)


def test_health_endpoint():
    """Test that the /health endpoint returns the correct response."""
    response = client.get("/health")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/json"

    data = response.json()
    assert data == {"status": "healthy", "service": "adstudio_backend", "env": settings.app_env}
