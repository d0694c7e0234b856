"""Brand kit router."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from adstudio.core.dependencies import get_client_scope
from adstudio.database import get_db
from adstudio.models.brand_kit import BrandKit
from adstudio.models.client import Client
from adstudio.schemas.brand_kit import BrandKitResponse, BrandKitUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/brand-kit", tags=["brand-kit"])


@router.get("", response_model=BrandKitResponse)
async def get_brand_kit(
    client: Annotated[Client, Depends(get_client_scope)],
    db: Annotated[Session, Depends(get_db)],
) -> BrandKitResponse:
    """Get the active client's brand kit."""
    brand_kit = db.query(BrandKit).filter(BrandKit.client_id == client.id).first()
    if brand_kit is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Brand kit not found",
        )
    return BrandKitResponse.model_validate(brand_kit)


@router.put("", response_model=BrandKitResponse)
async def upsert_brand_kit(
    kit_data: BrandKitUpdate,
    client: Annotated[Client, Depends(get_client_scope)],
    db: Annotated[Session, Depends(get_db)],
) -> BrandKitResponse:
    """Create or update the active client's brand kit."""
    brand_kit = db.query(BrandKit).filter(BrandKit.client_id == client.id).first()
    if brand_kit is None:
        brand_kit = BrandKit(client_id=client.id, primary_colors=[])
        db.add(brand_kit)

    for key, value in kit_data.model_dump(exclude_unset=True).items():
        if key == "primary_colors" and value is None:
            value = []
        setattr(brand_kit, key, value)

    db.commit()
    db.refresh(brand_kit)

    logger.info(f"Brand kit {brand_kit.id} saved for client {client.id}")
    return BrandKitResponse.model_validate(brand_kit)
