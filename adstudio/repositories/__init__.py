"""Persistence repositories package."""

from adstudio.repositories.campaign_batches import CampaignBatchesRepository, derive_batch_status
from adstudio.repositories.generations import GenerationsRepository

__all__ = ["CampaignBatchesRepository", "GenerationsRepository", "derive_batch_status"]
