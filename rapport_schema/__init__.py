from .communication import Communication, Integration, IntegrationType
from .insight import (
    AnalysisResult,
    ClientRef,
    ClientSummary,
    Insight,
    InsightDraft,
    InsightType,
    Priority,
    ScanSummary,
)

__all__ = [
    "AnalysisResult",
    "ClientRef",
    "ClientSummary",
    "Communication",
    "Insight",
    "InsightDraft",
    "InsightType",
    "Integration",
    "IntegrationType",
    "Priority",
    "ScanSummary",
]
