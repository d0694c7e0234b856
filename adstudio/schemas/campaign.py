"""Schemas for campaign planning and batch generation."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from adstudio.core.image_generator import ImageSize


class CampaignJob(BaseModel):
    """One planned creative-generation unit inside a batch."""

    model_config = ConfigDict(use_enum_values=True)

    index: Optional[int] = Field(None, description="Position tag from the plan (1-based)")
    prompt: str = Field(..., description="Image generation prompt", min_length=1)
    persona: Optional[str] = Field(None, description="Target persona")
    angle: Optional[str] = Field(None, description="Messaging angle")
    concept: Optional[str] = Field(None, description="What this creative execution is doing")
    headline: Optional[str] = Field(None, description="Suggested ad headline")
    cta: Optional[str] = Field(None, description="Call to action")
    image_size: Optional[ImageSize] = Field("square_hd", description="Image size preset")
    product_image_url: Optional[str] = Field(None, description="Product photo used as the image-to-image base")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Plan metadata (goal, strategy_rationale)")

    @field_validator("prompt", mode="before")
    @classmethod
    def normalize_prompt(cls, v: str) -> str:
        """Normalize prompt by stripping whitespace."""
        return v.strip() if isinstance(v, str) else v


class CampaignGenerateRequest(BaseModel):
    """Request schema for executing a campaign plan."""

    items: list[CampaignJob] = Field(default_factory=list, description="Plan items to execute")
    goal: Optional[str] = Field(None, description="Campaign goal stored on the batch")


class CampaignGenerateItem(BaseModel):
    """Identity of a submitted item."""

    index: int = Field(..., description="Position tag of the item")
    generation_id: int = Field(..., description="ID of the generation record")
    status: str = Field("pending", description="Initial status")


class CampaignGenerateResponse(BaseModel):
    """Response schema for a submitted batch."""

    batch_id: int = Field(..., description="ID of the campaign batch")
    total: int = Field(..., description="Number of items in the batch")
    items: list[CampaignGenerateItem] = Field(..., description="Per-item generation IDs in submission order")


class CampaignBatchItem(BaseModel):
    """Current state of one batch item, reconstructed from its generation."""

    generation_id: int
    index: Optional[int] = None
    persona: Optional[str] = None
    angle: Optional[str] = None
    status: str
    prompt: Optional[str] = None
    headline: Optional[str] = None
    concept: Optional[str] = None
    image_url: Optional[str] = None
    error: Optional[str] = None
    created_at: datetime


class CampaignBatchDetail(BaseModel):
    """Batch with aggregate status and per-item view."""

    id: int
    client_id: int
    goal: Optional[str] = None
    total_items: int
    status: str = Field(..., description="Aggregate status (running, done, failed)")
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime
    items: list[CampaignBatchItem] = Field(default_factory=list)


class CampaignBatchResponse(BaseModel):
    """Response schema for batch polling."""

    batch: CampaignBatchDetail


class CampaignPlanRequest(BaseModel):
    """Request schema for compiling a persona x angle generation matrix."""

    model_config = ConfigDict(use_enum_values=True)

    personas: list[str] = Field(default_factory=list, description="Target personas")
    angles: list[str] = Field(default_factory=list, description="Messaging angles")
    goal: Optional[str] = Field(None, description="Campaign objective")
    headline: Optional[str] = Field(None, description="Working headline")
    cta: Optional[str] = Field(None, description="Call to action")
    product_image_url: Optional[str] = Field(None, description="Product photo passed through to each item")
    ads_per_combo: int = Field(1, description="Variants per combination (clamped to 1-3)")
    image_size: ImageSize = Field("square_hd", description="Image size preset")

    @field_validator("personas", "angles", mode="before")
    @classmethod
    def clean_list(cls, v: Any) -> list[str]:
        """Strip entries and drop blanks."""
        if not isinstance(v, list):
            return []
        return [str(entry).strip() for entry in v if entry is not None and str(entry).strip()]

    @field_validator("ads_per_combo", mode="before")
    @classmethod
    def clamp_ads_per_combo(cls, v: Any) -> int:
        """Clamp to 1-3, treating unparseable values as 1."""
        try:
            value = int(v)
        except (TypeError, ValueError):
            return 1
        return min(3, max(1, value))


class CampaignPlan(BaseModel):
    """Compiled plan."""

    goal: Optional[str] = None
    total_ads: int
    items: list[CampaignJob]


class CampaignPlanResponse(BaseModel):
    """Response schema for campaign planning."""

    plan: CampaignPlan
    model: str
    planned_at: datetime
