"""Rapport communication scan service.

Public API re-exported here for convenience::

    from rapport_scan import ScanPipeline, FanOutCollector, BatchAnalyzer
"""

from .adapters import AdapterRegistry, ChatAdapter, MailAdapter, SourceAdapter, build_default_registry
from .analyzer import AnthropicEngine, BatchAnalyzer, ReasoningEngine
from .collaborators import (
    CommunicationStore,
    InMemoryIntegrationRegistry,
    ClientReader,
    InMemoryStore,
    InsightReader,
    IntegrationRegistry,
    LoggingStore,
    load_integrations,
)
from .collector import CollectionResult, FanOutCollector, LookbackWindow
from .config import AnalyzerConfig, ChatAPIConfig, MailAPIConfig, RetryConfig, ScanConfig, Settings
from .errors import (
    AnalysisError,
    FailureKind,
    NormalizationError,
    RapportError,
    ScanFailed,
    SourceError,
    UnauthorizedError,
)
from .logging import setup_logging
from .mapper import map_insights, summarize
from .normalizers import normalize
from .pipeline import ScanPipeline
from .retry import with_retry

__all__ = [
    "AdapterRegistry",
    "AnalysisError",
    "AnalyzerConfig",
    "AnthropicEngine",
    "BatchAnalyzer",
    "ChatAPIConfig",
    "ChatAdapter",
    "ClientReader",
    "CollectionResult",
    "CommunicationStore",
    "FailureKind",
    "FanOutCollector",
    "InMemoryIntegrationRegistry",
    "InMemoryStore",
    "InsightReader",
    "IntegrationRegistry",
    "LoggingStore",
    "LookbackWindow",
    "MailAPIConfig",
    "MailAdapter",
    "NormalizationError",
    "RapportError",
    "ReasoningEngine",
    "RetryConfig",
    "ScanConfig",
    "ScanFailed",
    "ScanPipeline",
    "Settings",
    "SourceAdapter",
    "SourceError",
    "UnauthorizedError",
    "build_default_registry",
    "load_integrations",
    "map_insights",
    "normalize",
    "setup_logging",
    "summarize",
    "with_retry",
]
