"""Tests for the single-image generation router."""

from fastapi.testclient import TestClient

from adstudio.core.image_generator import ImageGenerationError, ImageGenerationErrorCode
from adstudio.models.brand_kit import BrandKit
from adstudio.models.generation import Generation
from adstudio.repositories.generations import GenerationsRepository


def _brand_kit(db, client_id: int) -> BrandKit:
    kit = BrandKit(client_id=client_id, name="Acme", tagline="Run further", primary_colors=["#ff0000"])
    db.add(kit)
    db.commit()
    db.refresh(kit)
    return kit


def _done_generation(db, client_id: int, **fields) -> Generation:
    repo = GenerationsRepository(db)
    generation = repo.create(client_id, prompt="source", **fields)
    return repo.update(
        generation.id,
        client_id,
        {
            "status": "done",
            "generated_images": ["https://cdn.example.com/source.jpg"],
            "selected_image_url": "https://cdn.example.com/source.jpg",
            "metadata": {"image_size": "portrait_16_9"},
        },
    )


def test_generate_text_to_image(test_client: TestClient, create_client, fake_image_generator):
    """A plain prompt runs text-to-image and returns the done generation."""
    client = create_client()

    response = test_client.post(
        "/api/generate",
        json={
            "prompt": "  a red shoe  ",
            "headline": "Run",
            "body_copy": "Lightweight",
            "template_id": 7,
            "asset_ids": "[1, 2, \"x\", true]",
            "num_images": 9,
            "image_size": "billboard",
        },
    )

    assert response.status_code == 201
    generation = response.json()["generation"]
    assert generation["client_id"] == client.id
    assert generation["status"] == "done"
    assert generation["prompt"] == "a red shoe"
    assert generation["body_copy"] == "Lightweight"
    assert generation["template_id"] == 7
    assert generation["asset_ids"] == [1, 2]
    assert generation["selected_image_url"] == "https://cdn.example.com/0.jpg"
    assert generation["metadata"]["num_images"] == 4
    assert generation["metadata"]["image_size"] == "square_hd"
    assert generation["metadata"]["augmented_prompt"] == "a red shoe"
    assert "strength" not in generation["metadata"]
    assert fake_image_generator.calls == [{"prompt": "a red shoe", "image_size": "square_hd", "num_images": 4}]


def test_generate_applies_brand_kit(test_client: TestClient, create_client, test_db_session, fake_image_generator):
    """apply_brand_kit appends the brand identity to the prompt sent to the model."""
    client = create_client()
    kit = _brand_kit(test_db_session, client.id)

    response = test_client.post(
        "/api/generate",
        json={"prompt": "a red shoe", "apply_brand_kit": True, "brand_kit_id": kit.id},
    )

    assert response.status_code == 201
    generation = response.json()["generation"]
    assert generation["brand_kit_id"] == kit.id
    expected_prompt = (
        "a red shoe. brand: Acme, tagline: Run further, primary color: #ff0000. "
        "Professional Meta ad creative, high quality."
    )
    assert generation["metadata"]["augmented_prompt"] == expected_prompt
    assert fake_image_generator.calls[0]["prompt"] == expected_prompt


def test_generate_rejects_foreign_brand_kit(test_client: TestClient, create_client, test_db_session):
    """A brand kit of another workspace cannot be linked."""
    owner = create_client("Owner")
    other = create_client("Other")
    kit = _brand_kit(test_db_session, owner.id)

    response = test_client.post(
        "/api/generate",
        json={"prompt": "p", "brand_kit_id": kit.id},
        headers={"X-Client-Id": str(other.id)},
    )

    assert response.status_code == 404
    assert test_db_session.query(Generation).count() == 0


def test_generate_image_input_priority(test_client: TestClient, create_client, fake_image_generator):
    """Product images win over references; each has its own default strength."""
    create_client()

    test_client.post(
        "/api/generate",
        json={"prompt": "p", "product_image_url": "https://p.example.com/a.png", "reference_image_url": "https://r"},
    )
    test_client.post("/api/generate", json={"prompt": "p", "reference_image_url": "https://r.example.com/b.png"})
    test_client.post(
        "/api/generate",
        json={"prompt": "p", "reference_image_url": "https://r.example.com/b.png", "strength": 3},
    )

    product_call, reference_call, clamped_call = fake_image_generator.calls
    assert product_call["image_url"] == "https://p.example.com/a.png"
    assert product_call["strength"] == 0.75
    assert reference_call["image_url"] == "https://r.example.com/b.png"
    assert reference_call["strength"] == 0.9
    assert clamped_call["strength"] == 1.0


def test_generate_requires_prompt(test_client: TestClient, create_client, test_db_session):
    """A missing or blank prompt is a 400 and nothing is stored."""
    create_client()

    for payload in [{}, {"prompt": "   "}]:
        response = test_client.post("/api/generate", json=payload)
        assert response.status_code == 400
        assert response.json()["detail"] == "prompt is required"

    assert test_db_session.query(Generation).count() == 0


def test_generate_provider_failure(test_client: TestClient, create_client, test_db_session, fake_image_generator):
    """A provider failure is a 502 and leaves a failed generation."""
    create_client()
    fake_image_generator.outcomes = [False]

    response = test_client.post("/api/generate", json={"prompt": "a red shoe"})

    assert response.status_code == 502
    detail = response.json()["detail"]
    assert detail["error"] == "Image generation failed: Provider rejected: a red shoe"
    assert detail["generation"]["status"] == "failed"
    assert detail["generation"]["error"] == detail["error"]
    assert detail["generation"]["metadata"]["error_code"] == "FAL_ERROR"
    assert test_db_session.get(Generation, detail["generation"]["id"]).status == "failed"


def test_generate_missing_key(test_client: TestClient, create_client, fake_image_generator):
    """Missing image generation configuration is a 503."""
    create_client()
    fake_image_generator.outcomes = [ImageGenerationError(ImageGenerationErrorCode.KEY_MISSING, "no key")]

    response = test_client.post("/api/generate", json={"prompt": "p"})

    assert response.status_code == 503
    assert response.json()["detail"]["error"] == "Image generation is not configured (FAL_KEY missing)"


def test_edit_creates_variation(test_client: TestClient, create_client, test_db_session, fake_image_generator):
    """A variation uses the source image, inherits its size and links."""
    client = create_client()
    kit = _brand_kit(test_db_session, client.id)
    source = _done_generation(test_db_session, client.id, brand_kit_id=kit.id, template_id=3, asset_ids=[5])

    response = test_client.post(
        "/api/generate/edit",
        json={"generation_id": str(source.id), "prompt": "same shoe, at night", "num_images": 2},
    )

    assert response.status_code == 201
    generation = response.json()["generation"]
    assert generation["id"] != source.id
    assert generation["status"] == "done"
    assert generation["brand_kit_id"] == kit.id
    assert generation["template_id"] == 3
    assert generation["asset_ids"] == [5]
    assert generation["metadata"]["parent_generation_id"] == source.id
    assert generation["metadata"]["parent_image_url"] == "https://cdn.example.com/source.jpg"
    assert generation["metadata"]["strength"] == 0.85
    assert fake_image_generator.calls == [
        {
            "prompt": "same shoe, at night",
            "image_size": "portrait_16_9",
            "num_images": 2,
            "image_url": "https://cdn.example.com/source.jpg",
            "strength": 0.85,
        }
    ]


def test_edit_validation(test_client: TestClient, create_client, test_db_session):
    """Bad ids, missing prompts, unknown and unfinished sources are rejected."""
    client = create_client()
    pending = GenerationsRepository(test_db_session).create(client.id, prompt="p")

    no_id = test_client.post("/api/generate/edit", json={"prompt": "p"})
    no_prompt = test_client.post("/api/generate/edit", json={"generation_id": pending.id})
    unknown = test_client.post("/api/generate/edit", json={"generation_id": 9999, "prompt": "p"})
    not_done = test_client.post("/api/generate/edit", json={"generation_id": pending.id, "prompt": "p"})

    assert no_id.status_code == 400
    assert no_id.json()["detail"] == "generation_id is required and must be a number"
    assert no_prompt.status_code == 400
    assert unknown.status_code == 404
    assert unknown.json()["detail"] == "Source generation not found"
    assert not_done.status_code == 422
    assert not_done.json()["detail"] == (
        'Source generation has status "pending". Only completed generations can be varied.'
    )


def test_edit_source_without_image(test_client: TestClient, create_client, test_db_session):
    """A done source with no images cannot be varied."""
    client = create_client()
    repo = GenerationsRepository(test_db_session)
    source = repo.create(client.id, prompt="p")
    repo.update(source.id, client.id, {"status": "done"})

    response = test_client.post("/api/generate/edit", json={"generation_id": source.id, "prompt": "p"})

    assert response.status_code == 422
    assert response.json()["detail"] == "Source generation has no image to vary from."


def test_edit_is_client_scoped(test_client: TestClient, create_client, test_db_session):
    """Another workspace's generation cannot be varied."""
    owner = create_client("Owner")
    other = create_client("Other")
    source = _done_generation(test_db_session, owner.id)

    response = test_client.post(
        "/api/generate/edit",
        json={"generation_id": source.id, "prompt": "p"},
        headers={"X-Client-Id": str(other.id)},
    )

    assert response.status_code == 404
