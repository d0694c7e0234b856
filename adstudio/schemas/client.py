"""Client (workspace) schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ClientCreate(BaseModel):
    """Client creation request schema."""

    name: str = Field(..., min_length=1, max_length=255)

    @field_validator("name", mode="before")
    @classmethod
    def normalize_name(cls, v: str) -> str:
        """Normalize name by stripping whitespace."""
        return v.strip() if isinstance(v, str) else v


class ClientUpdate(BaseModel):
    """Client update request schema. Omitted fields are left unchanged."""

    name: str | None = Field(None, max_length=255)

    @field_validator("name", mode="before")
    @classmethod
    def normalize_name(cls, v: str | None) -> str | None:
        """Normalize name by stripping whitespace."""
        return v.strip() if isinstance(v, str) else v


class ActiveClientUpdate(BaseModel):
    """Workspace switch request. ``clientId`` is parsed by the router."""

    model_config = ConfigDict(populate_by_name=True)

    client_id: Any = Field(None, alias="clientId")


class ClientResponse(BaseModel):
    """Client response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    created_at: datetime
    updated_at: datetime


class ClientDeleteResponse(BaseModel):
    """Deleted client plus the remaining workspaces."""

    deleted: ClientResponse
    clients: list[ClientResponse]
