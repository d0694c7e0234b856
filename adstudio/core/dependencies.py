"""FastAPI dependencies: workspace scope and shared service clients."""

import logging
from functools import lru_cache
from typing import Annotated, Any, Optional

from fastapi import Cookie, Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from adstudio.core.campaign import CampaignBatchOrchestrator
from adstudio.core.image_generator import ImageGenerator
from adstudio.core.planner import CampaignPlanner
from adstudio.database import SessionLocal, get_db
from adstudio.models.client import Client

logger = logging.getLogger(__name__)

ACTIVE_CLIENT_COOKIE = "active_client_id"


def parse_id(value: Any) -> Optional[int]:
    """Parse a numeric id from a header, cookie or body value; None if not numeric."""
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def get_client_scope(
    db: Annotated[Session, Depends(get_db)],
    x_client_id: Annotated[Optional[str], Header()] = None,
    active_client_id: Annotated[Optional[str], Cookie()] = None,
) -> Client:
    """Resolve the active client workspace for a request.

    Resolution order: ``X-Client-Id`` header, ``active_client_id`` cookie,
    then the default (lowest id) client. Identifiers that do not match a
    client fall through to the next source.

    Raises:
        HTTPException: 503 if no client exists at all
    """
    client = None

    header_id = parse_id(x_client_id)
    if header_id is not None:
        client = db.query(Client).filter(Client.id == header_id).first()

    if client is None:
        cookie_id = parse_id(active_client_id)
        if cookie_id is not None:
            client = db.query(Client).filter(Client.id == cookie_id).first()

    if client is None:
        client = db.query(Client).order_by(Client.id.asc()).first()

    if client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="No client workspace found. Please create a client first.",
        )

    return client


@lru_cache
def get_image_generator() -> ImageGenerator:
    """Shared image generator, built once per process."""
    generator = ImageGenerator()
    generator.describe()
    return generator


@lru_cache
def get_campaign_planner() -> CampaignPlanner:
    """Shared campaign planner, built once per process."""
    return CampaignPlanner()


@lru_cache
def get_campaign_orchestrator() -> CampaignBatchOrchestrator:
    """Shared batch orchestrator, built once per process."""
    return CampaignBatchOrchestrator(
        session_factory=SessionLocal,
        image_generator=get_image_generator(),
    )
