"""Campaign planning and batch generation router."""

import logging
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy.orm import Session

from adstudio.core.campaign import BatchValidationError, CampaignBatchOrchestrator
from adstudio.core.dependencies import get_campaign_orchestrator, get_campaign_planner, get_client_scope
from adstudio.core.planner import CampaignPlanner, PlanningError, PlanningErrorCode
from adstudio.database import get_db
from adstudio.models.brand_kit import BrandKit
from adstudio.models.client import Client
from adstudio.schemas.campaign import (
    CampaignBatchResponse,
    CampaignGenerateItem,
    CampaignGenerateRequest,
    CampaignGenerateResponse,
    CampaignPlanRequest,
    CampaignPlanResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/campaign", tags=["campaign"])


@router.post("/plan", response_model=CampaignPlanResponse, status_code=status.HTTP_200_OK)
async def plan_campaign(
    plan_request: CampaignPlanRequest,
    client: Annotated[Client, Depends(get_client_scope)],
    planner: Annotated[CampaignPlanner, Depends(get_campaign_planner)],
    db: Annotated[Session, Depends(get_db)],
) -> CampaignPlanResponse:
    """Compile selected persona x angle pairs into a generation matrix.

    Args:
        plan_request: Personas, angles and optional campaign context
        client: Active client workspace
        planner: Campaign planner
        db: Database session

    Returns:
        CampaignPlanResponse: Plan items ready to submit to POST /api/campaign/generate

    Raises:
        HTTPException: 400 without personas or angles, 503 if the LLM key is missing, 502 on LLM failure
    """
    if not plan_request.personas:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one persona is required",
        )
    if not plan_request.angles:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one angle is required",
        )

    brand_kit = db.query(BrandKit).filter(BrandKit.client_id == client.id).first()

    try:
        plan = await planner.plan(plan_request, brand_kit=brand_kit)
    except PlanningError as e:
        code = (
            status.HTTP_503_SERVICE_UNAVAILABLE
            if e.code == PlanningErrorCode.KEY_MISSING
            else status.HTTP_502_BAD_GATEWAY
        )
        raise HTTPException(status_code=code, detail=f"Campaign planning failed: {e.message}")

    logger.info(f"Campaign plan with {plan.total_ads} items compiled for client {client.id}")

    return CampaignPlanResponse(
        plan=plan,
        model=planner.model,
        planned_at=datetime.now(timezone.utc),
    )


@router.post("/generate", response_model=CampaignGenerateResponse, status_code=status.HTTP_200_OK)
async def generate_campaign(
    generate_request: CampaignGenerateRequest,
    background_tasks: BackgroundTasks,
    client: Annotated[Client, Depends(get_client_scope)],
    orchestrator: Annotated[CampaignBatchOrchestrator, Depends(get_campaign_orchestrator)],
    db: Annotated[Session, Depends(get_db)],
) -> CampaignGenerateResponse:
    """Execute a plan as a campaign batch.

    Creates the batch and one pending generation per item, responds with their
    identifiers, and runs the image calls in the background. Poll
    GET /api/campaign/generate/{batch_id} for progress.

    Args:
        generate_request: Plan items and optional goal
        background_tasks: FastAPI background tasks for async execution
        client: Active client workspace
        orchestrator: Campaign batch orchestrator
        db: Database session

    Returns:
        CampaignGenerateResponse: Batch ID and per-item generation IDs

    Raises:
        HTTPException: 400 if the item list is empty or over the per-batch cap
    """
    try:
        submission = orchestrator.submit(
            db,
            generate_request.items,
            client_id=client.id,
            goal=generate_request.goal,
        )
    except BatchValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    background_tasks.add_task(orchestrator.run_batch, submission)

    return CampaignGenerateResponse(
        batch_id=submission.batch_id,
        total=submission.total,
        items=[
            CampaignGenerateItem(index=item.index, generation_id=item.generation_id, status=item.status)
            for item in submission.items
        ],
    )


@router.get("/generate/{batch_id}", response_model=CampaignBatchResponse, status_code=status.HTTP_200_OK)
async def get_campaign_batch(
    batch_id: int,
    client: Annotated[Client, Depends(get_client_scope)],
    orchestrator: Annotated[CampaignBatchOrchestrator, Depends(get_campaign_orchestrator)],
    db: Annotated[Session, Depends(get_db)],
) -> CampaignBatchResponse:
    """Get a batch's aggregate status with per-item generation state.

    Poll until ``batch.status`` is no longer ``running``.

    Raises:
        HTTPException: 404 if the batch does not exist in the active workspace
    """
    batch = orchestrator.get_batch(db, batch_id, client.id)
    if batch is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Batch not found",
        )
    return CampaignBatchResponse(batch=batch)
