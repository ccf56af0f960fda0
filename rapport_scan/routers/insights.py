"""Insight endpoints — read back what earlier scans produced."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from rapport_schema import Insight

from ..auth import get_current_account
from ..collaborators import CommunicationStore, InsightReader
from ..deps import get_store

router = APIRouter(prefix="/api/v1/insights", tags=["insights"])


@router.get("", response_model=list[Insight])
async def list_insights(
    account_id: Annotated[str, Depends(get_current_account)],
    store: Annotated[CommunicationStore, Depends(get_store)],
    limit: int = Query(default=20, ge=1, le=200),
    client: str | None = Query(default=None),
):
    """Non-dismissed insights for the account, newest first."""
    if not isinstance(store, InsightReader):
        raise HTTPException(
            status_code=status.HTTP_501_NOT_IMPLEMENTED,
            detail="Configured store does not serve insights",
        )
    return store.list_insights(account_id, limit=limit, client=client)
