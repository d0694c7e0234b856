"""Schemas for generation records."""

import json
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from adstudio.core.image_generator import MAX_IMAGES_PER_CALL


class GeneratedImage(BaseModel):
    """One image artifact within a generation's result list."""

    url: str = Field(..., description="Image URL")
    width: Optional[int] = Field(None, description="Width in pixels")
    height: Optional[int] = Field(None, description="Height in pixels")
    content_type: str = Field("image/jpeg", description="MIME type")
    is_selected: bool = Field(False, description="True if this is the generation's selected image")
    score: Optional[float] = Field(None, description="Optional quality score")
    status: str = Field("ready", description="ready or archived")


class GenerationResponse(BaseModel):
    """Response schema for a generation record."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    client_id: int
    brand_kit_id: Optional[int] = None
    template_id: Optional[int] = None
    campaign_batch_id: Optional[int] = None
    status: str = Field(..., description="pending, processing, done or failed")
    prompt: Optional[str] = None
    headline: Optional[str] = None
    body_copy: Optional[str] = None
    cta: Optional[str] = None
    concept: Optional[str] = None
    avatar: Optional[str] = None
    asset_ids: list[Any] = Field(default_factory=list)
    generated_images: list[GeneratedImage] = Field(default_factory=list)
    selected_image_url: Optional[str] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict, validation_alias=AliasChoices("generation_metadata", "metadata"))
    created_at: datetime
    updated_at: datetime


class GenerationListResponse(BaseModel):
    """Response schema for listing generations."""

    generations: list[GenerationResponse]


class _GenerateOptions(BaseModel):
    """Fields shared by the generate and edit requests."""

    prompt: Optional[str] = Field(None, description="Image generation prompt (required, checked by the route)")
    headline: Optional[str] = Field(None, description="Ad headline (stored only)")
    body_copy: Optional[str] = Field(None, description="Ad body copy (stored only)")
    cta: Optional[str] = Field(None, description="Call to action (stored only)")
    concept: Optional[str] = Field(None, description="Strategic intent (stored only)")
    avatar: Optional[str] = Field(None, description="Target persona (stored only)")
    apply_brand_kit: bool = Field(False, description="Append the active brand kit to the prompt")
    strength: Optional[float] = Field(None, description="Image-to-image denoising strength, clamped to 0-1")
    num_images: int = Field(1, description="Variants to generate, clamped to 1-4")
    image_size: Optional[str] = Field(None, description="Size preset; unknown values fall back")

    @field_validator("prompt", "headline", "body_copy", "cta", "concept", "avatar", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        """Strip text fields; blank values become None."""
        if isinstance(v, str):
            return v.strip() or None
        return v

    @field_validator("strength")
    @classmethod
    def clamp_strength(cls, v: Optional[float]) -> Optional[float]:
        """Clamp strength to 0-1."""
        if v is None:
            return None
        return min(1.0, max(0.0, v))

    @field_validator("num_images", mode="before")
    @classmethod
    def clamp_num_images(cls, v: Any) -> int:
        """Clamp to 1-4, treating unparseable values as 1."""
        try:
            value = int(v)
        except (TypeError, ValueError):
            return 1
        return min(MAX_IMAGES_PER_CALL, max(1, value))


class GenerateRequest(_GenerateOptions):
    """Request schema for a single synchronous generation."""

    asset_ids: list[int] = Field(default_factory=list, description="Brand asset IDs used as sources")
    brand_kit_id: Optional[int] = Field(None, description="Brand kit to link the generation to")
    template_id: Optional[int] = Field(None, description="Template to link the generation to")
    reference_image_url: Optional[str] = Field(None, description="Style reference used as image-to-image base")
    product_image_url: Optional[str] = Field(None, description="Product photo used as image-to-image base")

    @field_validator("asset_ids", mode="before")
    @classmethod
    def parse_asset_ids(cls, v: Any) -> list[int]:
        """Accept a list or a JSON-encoded list; keep integer entries only."""
        if isinstance(v, str):
            try:
                v = json.loads(v)
            except json.JSONDecodeError:
                return []
        if not isinstance(v, list):
            return []
        return [entry for entry in v if isinstance(entry, int) and not isinstance(entry, bool)]

    @field_validator("reference_image_url", "product_image_url", mode="before")
    @classmethod
    def blank_url_to_none(cls, v: Any) -> Any:
        """Strip URLs; blank values become None."""
        if isinstance(v, str):
            return v.strip() or None
        return v


class GenerateEditRequest(_GenerateOptions):
    """Request schema for an image-to-image variation of an existing generation."""

    generation_id: Any = Field(None, description="Source generation ID (checked by the route)")


class GenerateResponse(BaseModel):
    """Response schema for the generate routes."""

    generation: GenerationResponse
