"""Client endpoints — the clients earlier scans attributed insights to."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from rapport_schema import ClientSummary

from ..auth import get_current_account
from ..collaborators import ClientReader, CommunicationStore
from ..deps import get_store

router = APIRouter(prefix="/api/v1/clients", tags=["clients"])

CLIENT_CREATION_UNAVAILABLE = (
    "Client creation via the API is not available. "
    "Clients are created automatically from communications."
)


@router.get("", response_model=list[ClientSummary])
async def list_clients(
    account_id: Annotated[str, Depends(get_current_account)],
    store: Annotated[CommunicationStore, Depends(get_store)],
):
    """The account's clients, most recently updated first."""
    if not isinstance(store, ClientReader):
        raise HTTPException(
            status_code=status.HTTP_501_NOT_IMPLEMENTED,
            detail="Configured store does not serve clients",
        )
    return store.list_clients(account_id)


@router.post("", status_code=status.HTTP_501_NOT_IMPLEMENTED)
async def create_client(
    account_id: Annotated[str, Depends(get_current_account)],
):
    raise HTTPException(
        status_code=status.HTTP_501_NOT_IMPLEMENTED,
        detail=CLIENT_CREATION_UNAVAILABLE,
    )
