"""Tests for the brand kit router."""

from fastapi.testclient import TestClient


def test_brand_kit_not_found(test_client: TestClient, create_client):
    """A client without a brand kit gets 404."""
    create_client()

    response = test_client.get("/api/brand-kit")

    assert response.status_code == 404
    assert response.json()["detail"] == "Brand kit not found"


def test_upsert_brand_kit(test_client: TestClient, create_client):
    """PUT creates the kit, then updates only the supplied fields."""
    client = create_client()

    created = test_client.put(
        "/api/brand-kit",
        json={"name": " Acme ", "tone_of_voice": "Playful", "primary_colors": ["#ff0000", " ", "#00ff00"]},
    )

    assert created.status_code == 200
    assert created.json()["client_id"] == client.id
    assert created.json()["name"] == "Acme"
    assert created.json()["primary_colors"] == ["#ff0000", "#00ff00"]

    updated = test_client.put("/api/brand-kit", json={"tagline": "Run further"})

    assert updated.json()["id"] == created.json()["id"]
    assert updated.json()["tagline"] == "Run further"
    assert updated.json()["tone_of_voice"] == "Playful"
    assert test_client.get("/api/brand-kit").json()["tagline"] == "Run further"


def test_brand_kit_per_client(test_client: TestClient, create_client):
    """Each workspace has its own kit."""
    first = create_client("First")
    second = create_client("Second")
    test_client.put("/api/brand-kit", json={"name": "First Brand"}, headers={"X-Client-Id": str(first.id)})

    response = test_client.get("/api/brand-kit", headers={"X-Client-Id": str(second.id)})

    assert response.status_code == 404
