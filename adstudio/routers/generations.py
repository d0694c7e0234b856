"""Generation history router."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from adstudio.core.dependencies import get_client_scope
from adstudio.database import get_db
from adstudio.models.client import Client
from adstudio.repositories.generations import GenerationsRepository
from adstudio.schemas.generation import GenerationListResponse, GenerationResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/generations", tags=["generations"])


@router.get("", response_model=GenerationListResponse, status_code=status.HTTP_200_OK)
async def list_generations(
    client: Annotated[Client, Depends(get_client_scope)],
    db: Annotated[Session, Depends(get_db)],
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> GenerationListResponse:
    """List generations for the active client, newest first."""
    generations = GenerationsRepository(db).list(client.id, limit=limit, offset=offset)
    return GenerationListResponse(
        generations=[GenerationResponse.model_validate(generation) for generation in generations]
    )


@router.get("/{generation_id}", response_model=GenerationResponse, status_code=status.HTTP_200_OK)
async def get_generation(
    generation_id: int,
    client: Annotated[Client, Depends(get_client_scope)],
    db: Annotated[Session, Depends(get_db)],
) -> GenerationResponse:
    """Get a single generation by ID.

    Raises:
        HTTPException: 404 if the generation does not exist in the active workspace
    """
    generation = GenerationsRepository(db).get(generation_id, client.id)
    if generation is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Generation not found",
        )
    return GenerationResponse.model_validate(generation)
