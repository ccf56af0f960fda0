"""Analysis and insight schema — what the reasoning engine returns and what gets persisted."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class InsightType(str, Enum):
    """Kind of claim an insight makes about a client relationship."""

    RISK = "risk"
    OPPORTUNITY = "opportunity"
    SENTIMENT_SHIFT = "sentiment_shift"
    FOLLOW_UP = "follow_up"
    CHURN_SIGNAL = "churn_signal"
    POSITIVE_FEEDBACK = "positive_feedback"


class Priority(str, Enum):
    """How urgently an insight should be acted on."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class InsightDraft(BaseModel):
    """One insight as emitted by the reasoning engine, before run metadata is attached."""

    type: InsightType = Field(description="Insight category")
    priority: Priority = Field(description="Urgency")
    title: str = Field(min_length=1, description="Short headline")
    description: str = Field(description="Explanation of the claim")
    context_quote: str = Field(default="", description="Verbatim excerpt supporting the claim")
    confidence_score: float = Field(ge=0.0, le=1.0, description="Engine confidence (0-1)")
    client: str | None = Field(
        default=None,
        description="Client identity the engine attributes the insight to",
    )


class AnalysisResult(BaseModel):
    """Structured response of one batch analysis call.

    Both keys are required; a response missing either is rejected.
    """

    sentiment_score: float = Field(ge=-1.0, le=1.0, description="Batch-level sentiment (-1 to 1)")
    insights: list[InsightDraft] = Field(description="Insights in engine order")


class ClientRef(BaseModel):
    """Weak reference to a client record owned by another service."""

    identity: str = Field(description="Identifier / name declared by the engine")


class Insight(BaseModel):
    """Final insight record handed to the persistence collaborator."""

    account_id: str = Field(description="Account the run was scoped to")
    type: InsightType
    priority: Priority
    title: str
    description: str
    context_quote: str
    confidence_score: float = Field(ge=0.0, le=1.0)
    date: datetime = Field(description="Run time the insight was produced at (UTC)")
    client_ref: ClientRef | None = Field(default=None, description="Resolved lazily by storage")
    is_dismissed: bool = Field(default=False, description="Set by the UI, never by the pipeline")


class ScanSummary(BaseModel):
    """Run result returned to the caller."""

    message: str
    communications_count: int = Field(ge=0)
    insights_count: int = Field(ge=0)
    sentiment_score: float | None = None


class ClientSummary(BaseModel):
    """A client as seen through the insights attributed to it."""

    identity: str = Field(description="Client identity declared by the engine")
    insights_count: int = Field(ge=0, description="Non-dismissed insights attributed to the client")
    updated_at: datetime = Field(description="Date of the newest attributed insight (UTC)")
