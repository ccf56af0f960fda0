"""Scan endpoint — run the pipeline for the calling account."""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends

from rapport_schema import ScanSummary

from ..auth import get_current_account
from ..deps import get_pipeline
from ..errors import FailureKind, ScanFailed
from ..pipeline import ScanPipeline

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1", tags=["scan"])

INTERNAL_ERROR = "Internal server error"


@router.post("/scan", response_model=ScanSummary)
async def scan_communications(
    account_id: Annotated[str, Depends(get_current_account)],
    pipeline: Annotated[ScanPipeline, Depends(get_pipeline)],
):
    """Fetch, analyze and store the account's recent communications."""
    try:
        return await pipeline.run(account_id)
    except ScanFailed:
        raise
    except Exception as exc:
        logger.exception("scan_failed", account_id=account_id)
        raise ScanFailed(FailureKind.INTERNAL, INTERNAL_ERROR) from exc
