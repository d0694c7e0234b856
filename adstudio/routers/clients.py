"""Client workspaces router."""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Cookie, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from adstudio.core.dependencies import ACTIVE_CLIENT_COOKIE, get_client_scope, parse_id
from adstudio.database import get_db
from adstudio.models.client import Client
from adstudio.schemas.client import (
    ActiveClientUpdate,
    ClientCreate,
    ClientDeleteResponse,
    ClientResponse,
    ClientUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/clients", tags=["clients"])

ACTIVE_CLIENT_COOKIE_MAX_AGE = 30 * 24 * 60 * 60


def _set_active_cookie(response: Response, client_id: int) -> None:
    response.set_cookie(
        ACTIVE_CLIENT_COOKIE,
        str(client_id),
        max_age=ACTIVE_CLIENT_COOKIE_MAX_AGE,
        httponly=True,
        samesite="lax",
    )


def _get_client_or_404(db: Session, client_id: int) -> Client:
    client = db.query(Client).filter(Client.id == client_id).first()
    if client is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Client not found",
        )
    return client


@router.get("", response_model=list[ClientResponse])
async def list_clients(db: Annotated[Session, Depends(get_db)]) -> list[ClientResponse]:
    """List all client workspaces."""
    clients = db.query(Client).order_by(Client.id.asc()).all()
    return [ClientResponse.model_validate(client) for client in clients]


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(
    client_data: ClientCreate,
    db: Annotated[Session, Depends(get_db)],
) -> ClientResponse:
    """Create a new client workspace."""
    client = Client(name=client_data.name)
    db.add(client)
    db.commit()
    db.refresh(client)

    logger.info(f"Client {client.id} created")
    return ClientResponse.model_validate(client)


@router.get("/active", response_model=ClientResponse)
async def get_active_client(client: Annotated[Client, Depends(get_client_scope)]) -> ClientResponse:
    """Return the workspace the current request resolves to."""
    return ClientResponse.model_validate(client)


@router.put("/active", response_model=ClientResponse)
async def set_active_client(
    active_data: ActiveClientUpdate,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
) -> ClientResponse:
    """Switch the active workspace by setting the selector cookie.

    Raises:
        HTTPException: 400 if clientId is not a number, 404 if the client does not exist
    """
    client_id = parse_id(active_data.client_id)
    if client_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="clientId must be a number",
        )

    client = _get_client_or_404(db, client_id)
    _set_active_cookie(response, client.id)
    return ClientResponse.model_validate(client)


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> ClientResponse:
    """Get a client workspace by ID."""
    return ClientResponse.model_validate(_get_client_or_404(db, client_id))


@router.patch("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: int,
    client_data: ClientUpdate,
    db: Annotated[Session, Depends(get_db)],
) -> ClientResponse:
    """Rename a client workspace.

    Raises:
        HTTPException: 404 if the client does not exist, 400 if the new name is blank
    """
    client = _get_client_or_404(db, client_id)

    update_data = client_data.model_dump(exclude_unset=True)
    if "name" in update_data:
        if not update_data["name"]:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="name cannot be empty",
            )
        client.name = update_data["name"]

    db.commit()
    db.refresh(client)
    return ClientResponse.model_validate(client)


@router.delete("/{client_id}", response_model=ClientDeleteResponse)
async def delete_client(
    client_id: int,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    active_client_id: Annotated[Optional[str], Cookie()] = None,
) -> ClientDeleteResponse:
    """Delete a client workspace and everything it owns.

    The last remaining workspace cannot be deleted. When the deleted client
    was the active one, the selector cookie moves to the lowest remaining id.

    Raises:
        HTTPException: 404 if the client does not exist, 409 if it is the last one
    """
    client = _get_client_or_404(db, client_id)

    if db.query(Client).count() <= 1:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Cannot delete the last workspace. Create another client first.",
        )

    deleted = ClientResponse.model_validate(client)
    db.delete(client)
    db.commit()
    logger.info(f"Client {client_id} deleted")

    if parse_id(active_client_id) == client_id:
        next_client = db.query(Client).order_by(Client.id.asc()).first()
        _set_active_cookie(response, next_client.id)

    clients = db.query(Client).order_by(Client.id.asc()).all()
    return ClientDeleteResponse(
        deleted=deleted,
        clients=[ClientResponse.model_validate(remaining) for remaining in clients],
    )
