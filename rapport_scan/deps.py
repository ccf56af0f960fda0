"""FastAPI dependency-injection helpers for pipeline collaborators."""

from __future__ import annotations

from fastapi import Request

from .collaborators import CommunicationStore
from .pipeline import ScanPipeline


def get_pipeline(request: Request) -> ScanPipeline:
    return request.app.state.pipeline


def get_store(request: Request) -> CommunicationStore:
    return request.app.state.store
