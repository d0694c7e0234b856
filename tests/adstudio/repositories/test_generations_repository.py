"""Tests for the generation record store."""

import pytest

from adstudio.repositories.campaign_batches import CampaignBatchesRepository
from adstudio.repositories.generations import GenerationsRepository


def test_create_defaults(create_client, test_db_session):
    """New generations start pending with empty collections."""
    client = create_client()

    generation = GenerationsRepository(test_db_session).create(
        client.id,
        prompt="a red shoe",
        headline="Run",
        asset_ids="not-a-list",
        unknown_field="ignored",
    )

    assert generation.id is not None
    assert generation.status == "pending"
    assert generation.prompt == "a red shoe"
    assert generation.headline == "Run"
    assert generation.asset_ids == []
    assert generation.generated_images == []
    assert generation.generation_metadata == {}
    assert generation.selected_image_url is None
    assert generation.error is None


def test_update_touches_only_supplied_fields(create_client, test_db_session):
    """Partial updates leave other columns alone."""
    client = create_client()
    repo = GenerationsRepository(test_db_session)
    generation = repo.create(client.id, prompt="p", headline="h", metadata={"persona": "Runner"})

    updated = repo.update(generation.id, client.id, {"status": "processing", "not_a_column": 1})

    assert updated.status == "processing"
    assert updated.prompt == "p"
    assert updated.headline == "h"
    assert updated.generation_metadata == {"persona": "Runner"}


def test_update_normalizes_images_with_same_call_selection(create_client, test_db_session):
    """generated_images is normalized against the selected URL of the same update."""
    client = create_client()
    repo = GenerationsRepository(test_db_session)
    generation = repo.create(client.id, prompt="p")

    updated = repo.update(
        generation.id,
        client.id,
        {
            "status": "done",
            "generated_images": [
                {"url": "https://cdn.example.com/1.jpg", "width": 1024},
                {"width": 1},
                "https://cdn.example.com/2.jpg",
            ],
            "selected_image_url": "https://cdn.example.com/1.jpg",
        },
    )

    assert updated.selected_image_url == "https://cdn.example.com/1.jpg"
    assert [image["url"] for image in updated.generated_images] == [
        "https://cdn.example.com/1.jpg",
        "https://cdn.example.com/2.jpg",
    ]
    assert [image["is_selected"] for image in updated.generated_images] == [True, False]
    assert updated.generated_images[0]["width"] == 1024
    assert updated.generated_images[1]["content_type"] == "image/jpeg"


def test_update_images_without_selection_marks_none(create_client, test_db_session):
    """Without a selected URL in the same call, no entry is selected."""
    client = create_client()
    repo = GenerationsRepository(test_db_session)
    generation = repo.create(client.id, prompt="p")

    updated = repo.update(generation.id, client.id, {"generated_images": ["https://cdn.example.com/1.jpg"]})

    assert updated.generated_images[0]["is_selected"] is False


def test_update_rejects_unknown_status(create_client, test_db_session):
    """Only the four lifecycle statuses are accepted."""
    client = create_client()
    repo = GenerationsRepository(test_db_session)
    generation = repo.create(client.id, prompt="p")

    with pytest.raises(ValueError):
        repo.update(generation.id, client.id, {"status": "cancelled"})


def test_update_missing_or_foreign_row_returns_none(create_client, test_db_session):
    """Rows of another client are invisible."""
    owner = create_client("Owner")
    other = create_client("Other")
    repo = GenerationsRepository(test_db_session)
    generation = repo.create(owner.id, prompt="p")

    assert repo.update(generation.id, other.id, {"status": "failed"}) is None
    assert repo.update(9999, owner.id, {"status": "failed"}) is None
    assert repo.get(generation.id, other.id) is None


def test_empty_update_returns_current_row(create_client, test_db_session):
    """An update with nothing to write returns the row unchanged."""
    client = create_client()
    repo = GenerationsRepository(test_db_session)
    generation = repo.create(client.id, prompt="p")

    assert repo.update(generation.id, client.id, {}).id == generation.id


def test_list_newest_first_with_paging(create_client, test_db_session):
    """list() orders newest first and honours limit/offset."""
    client = create_client()
    repo = GenerationsRepository(test_db_session)
    ids = [repo.create(client.id, prompt=str(n)).id for n in range(5)]

    page = repo.list(client.id, limit=2, offset=1)

    assert [g.id for g in page] == [ids[3], ids[2]]


def test_list_by_batch_in_creation_order(create_client, test_db_session):
    """Only the batch's own generations are returned, oldest first."""
    client = create_client()
    batch = CampaignBatchesRepository(test_db_session).create(client.id, total_items=2)
    repo = GenerationsRepository(test_db_session)
    first = repo.create(client.id, prompt="a", campaign_batch_id=batch.id)
    repo.create(client.id, prompt="loose")
    second = repo.create(client.id, prompt="b", campaign_batch_id=batch.id)

    assert [g.id for g in repo.list_by_batch(batch.id, client.id)] == [first.id, second.id]


@pytest.mark.parametrize("terminal", ["done", "failed"])
def test_terminal_status_is_never_left(create_client, test_db_session, terminal):
    """Once done or failed, a generation cannot move to another status."""
    client = create_client()
    repo = GenerationsRepository(test_db_session)
    generation = repo.create(client.id, prompt="p")
    repo.update(generation.id, client.id, {"status": terminal})

    for status in ["pending", "processing", "done", "failed"]:
        if status == terminal:
            continue
        with pytest.raises(ValueError):
            repo.update(generation.id, client.id, {"status": status})

    assert repo.update(generation.id, client.id, {"status": terminal, "error": "kept"}).status == terminal
