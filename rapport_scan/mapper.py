"""Insight mapper — attach run metadata to analyzer drafts and build the run summary."""

from __future__ import annotations

from datetime import datetime

from rapport_schema import AnalysisResult, ClientRef, Insight, ScanSummary

SCAN_SUCCEEDED = "Communications scanned successfully"


def map_insights(result: AnalysisResult, account_id: str, run_at: datetime) -> list[Insight]:
    """One :class:`Insight` per draft, in engine order.

    Draft fields are carried over unchanged.  The declared client identity
    becomes a weak :class:`ClientRef`; resolving it to a stored client is
    the storage side's job.
    """
    return [
        Insight(
            account_id=account_id,
            type=draft.type,
            priority=draft.priority,
            title=draft.title,
            description=draft.description,
            context_quote=draft.context_quote,
            confidence_score=draft.confidence_score,
            date=run_at,
            client_ref=ClientRef(identity=draft.client) if draft.client else None,
        )
        for draft in result.insights
    ]


def summarize(
    communications_count: int,
    insights: list[Insight],
    sentiment_score: float | None,
    *,
    message: str = SCAN_SUCCEEDED,
) -> ScanSummary:
    return ScanSummary(
        message=message,
        communications_count=communications_count,
        insights_count=len(insights),
        sentiment_score=sentiment_score,
    )
