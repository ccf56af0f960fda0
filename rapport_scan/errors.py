"""Exception hierarchy for the scan pipeline.

Source, record and identity failures are recovered where they happen.
Only :class:`UnauthorizedError` and :class:`ScanFailed` reach the caller.
"""

from __future__ import annotations

from enum import Enum


class RapportError(Exception):
    """Base class for all scan pipeline errors."""


class UnauthorizedError(RapportError):
    """No valid account session; raised before any external call."""


class SourceError(RapportError):
    """A provider request failed (whole source or one sub-resource)."""

    def __init__(self, provider: str, detail: str) -> None:
        super().__init__(f"{provider}: {detail}")
        self.provider = provider
        self.detail = detail


class NormalizationError(RapportError):
    """A raw record could not be converted into a Communication."""


class AnalysisError(RapportError):
    """The reasoning engine call failed or returned a malformed result."""


class FailureKind(str, Enum):
    """Run-level failure classes a caller can tell apart."""

    ANALYSIS = "analysis_failure"
    INTERNAL = "internal_failure"

    @property
    def status_code(self) -> int:
        return 502 if self is FailureKind.ANALYSIS else 500


class ScanFailed(RapportError):
    """A pipeline run failed as a whole."""

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        *,
        communications_count: int = 0,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.communications_count = communications_count
