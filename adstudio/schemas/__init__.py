"""Pydantic schemas package."""

from adstudio.schemas.campaign import (
    CampaignBatchResponse,
    CampaignGenerateRequest,
    CampaignGenerateResponse,
    CampaignJob,
    CampaignPlanRequest,
    CampaignPlanResponse,
)
from adstudio.schemas.generation import (
    GenerateEditRequest,
    GenerateRequest,
    GenerateResponse,
    GeneratedImage,
    GenerationListResponse,
    GenerationResponse,
)

__all__ = [
    "CampaignJob",
    "CampaignGenerateRequest",
    "CampaignGenerateResponse",
    "CampaignBatchResponse",
    "CampaignPlanRequest",
    "CampaignPlanResponse",
    "GeneratedImage",
    "GenerationResponse",
    "GenerationListResponse",
    "GenerateRequest",
    "GenerateEditRequest",
    "GenerateResponse",
]
