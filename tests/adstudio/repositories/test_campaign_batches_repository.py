"""Tests for the campaign batch store and status derivation."""

import itertools

import pytest

from adstudio.repositories.campaign_batches import CampaignBatchesRepository, derive_batch_status
from adstudio.repositories.generations import GenerationsRepository


@pytest.mark.parametrize(
    "statuses, expected",
    [
        (["pending"], "running"),
        (["processing", "done"], "running"),
        (["failed", "pending"], "running"),
        (["done", "done"], "done"),
        (["done", "failed"], "done"),
        (["failed", "failed"], "failed"),
        (["failed"], "failed"),
        ([], "done"),
    ],
)
def test_derive_batch_status(statuses, expected):
    """running while anything is in flight, failed only if all failed, else done."""
    assert derive_batch_status(statuses) == expected


def test_derive_batch_status_order_independent():
    """Completion order does not change the outcome."""
    for ordering in itertools.permutations(["done", "failed", "done"]):
        assert derive_batch_status(ordering) == "done"


def test_create_batch(create_client, test_db_session):
    """Batches start running with a fixed item count."""
    client = create_client()

    batch = CampaignBatchesRepository(test_db_session).create(
        client.id, goal="Launch", total_items=3, metadata={"source": "campaign_plan"}
    )

    assert batch.status == "running"
    assert batch.total_items == 3
    assert batch.goal == "Launch"
    assert batch.batch_metadata == {"source": "campaign_plan"}


def test_refresh_status_follows_children(create_client, test_db_session):
    """refresh_status re-derives from the current child rows every time."""
    client = create_client()
    batches = CampaignBatchesRepository(test_db_session)
    generations = GenerationsRepository(test_db_session)
    batch = batches.create(client.id, total_items=2)
    first = generations.create(client.id, prompt="a", campaign_batch_id=batch.id)
    second = generations.create(client.id, prompt="b", campaign_batch_id=batch.id)

    assert batches.refresh_status(batch.id, client.id) == "running"

    generations.update(first.id, client.id, {"status": "failed", "error": "x"})
    assert batches.refresh_status(batch.id, client.id) == "running"

    generations.update(second.id, client.id, {"status": "failed", "error": "y"})
    assert batches.refresh_status(batch.id, client.id) == "failed"

    test_db_session.expire_all()
    assert batches.get(batch.id, client.id).status == "failed"


def test_refresh_status_ignores_other_batches(create_client, test_db_session):
    """Only the batch's own children are counted."""
    client = create_client()
    batches = CampaignBatchesRepository(test_db_session)
    generations = GenerationsRepository(test_db_session)
    batch = batches.create(client.id, total_items=1)
    other = batches.create(client.id, total_items=1)
    done = generations.create(client.id, prompt="a", campaign_batch_id=batch.id)
    generations.create(client.id, prompt="b", campaign_batch_id=other.id)
    generations.update(done.id, client.id, {"status": "done"})

    assert batches.refresh_status(batch.id, client.id) == "done"


def test_set_status_rejects_unknown(create_client, test_db_session):
    """Batch status is a closed set."""
    client = create_client()
    batches = CampaignBatchesRepository(test_db_session)
    batch = batches.create(client.id, total_items=1)

    with pytest.raises(ValueError):
        batches.set_status(batch.id, client.id, "paused")


def test_get_is_client_scoped(create_client, test_db_session):
    """Another client's batch is not returned."""
    owner = create_client("Owner")
    other = create_client("Other")
    batches = CampaignBatchesRepository(test_db_session)
    batch = batches.create(owner.id, total_items=1)

    assert batches.get(batch.id, owner.id) is not None
    assert batches.get(batch.id, other.id) is None
