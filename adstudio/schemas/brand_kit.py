"""Brand kit schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator


class BrandKitUpdate(BaseModel):
    """Brand kit upsert request schema. Omitted fields are left unchanged."""

    name: str | None = None
    tagline: str | None = None
    tone_of_voice: str | None = None
    primary_colors: list[str] | None = None

    @field_validator("name", "tagline", "tone_of_voice", mode="before")
    @classmethod
    def normalize_text(cls, v: str | None) -> str | None:
        """Normalize text fields by stripping whitespace."""
        if v is None:
            return None
        return v.strip() if isinstance(v, str) else v

    @field_validator("primary_colors", mode="before")
    @classmethod
    def normalize_colors(cls, v: list | None) -> list | None:
        """Strip color entries and drop blanks."""
        if v is None:
            return None
        if not isinstance(v, list):
            return v
        return [str(color).strip() for color in v if color is not None and str(color).strip()]


class BrandKitResponse(BaseModel):
    """Brand kit response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    client_id: int
    name: str | None
    tagline: str | None
    tone_of_voice: str | None
    primary_colors: list[str]
    created_at: datetime
    updated_at: datetime
