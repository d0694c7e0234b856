"""Database models package."""

from adstudio.models.brand_kit import BrandKit
from adstudio.models.campaign_batch import CampaignBatch
from adstudio.models.client import Client
from adstudio.models.generation import Generation

__all__ = ["Client", "BrandKit", "CampaignBatch", "Generation"]
