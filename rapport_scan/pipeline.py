"""ScanPipeline — integrations → collect → analyze → map → store, for one account."""

from __future__ import annotations

from datetime import datetime, timezone

import structlog

from rapport_schema import Communication, ScanSummary

from .analyzer import BatchAnalyzer
from .collaborators import CommunicationStore, IntegrationRegistry
from .collector import FanOutCollector
from .config import ScanConfig
from .errors import AnalysisError, FailureKind, ScanFailed
from .mapper import map_insights, summarize

logger = structlog.get_logger()

NO_INTEGRATIONS = "No active integrations found. Please connect chat or mail first."
NO_COMMUNICATIONS = "No communications found in the last {hours:g} hours"
NO_NEW_COMMUNICATIONS = "No new communications since the last scan"
ANALYSIS_FAILED = "Failed to analyze communications with AI"


class ScanPipeline:
    """Runs one scan for one account.

    Outcomes:

    * no active integrations, or nothing collected → zero summary, the
      analyzer is never called;
    * analyzer failure → :class:`ScanFailed` (``FailureKind.ANALYSIS``)
      carrying the collected count; nothing is stored;
    * success → results handed to the store, summary returned.
    """

    def __init__(
        self,
        *,
        integrations: IntegrationRegistry,
        collector: FanOutCollector,
        analyzer: BatchAnalyzer,
        store: CommunicationStore,
        config: ScanConfig,
    ) -> None:
        self._integrations = integrations
        self._collector = collector
        self._analyzer = analyzer
        self._store = store
        self._config = config

    async def run(self, account_id: str, *, now: datetime | None = None) -> ScanSummary:
        run_at = now or datetime.now(timezone.utc)
        log = logger.bind(account_id=account_id)

        integrations = await self._integrations.active_integrations(account_id)
        if not integrations:
            log.info("scan_skipped_no_integrations")
            return summarize(0, [], None, message=NO_INTEGRATIONS)

        collected = await self._collector.collect(integrations, now=run_at)
        communications = collected.communications
        if not communications:
            log.info("scan_empty_batch", failed_integrations=collected.failed_integrations)
            return summarize(
                0, [], None, message=NO_COMMUNICATIONS.format(hours=self._config.lookback_hours)
            )

        batch = await self._unseen(account_id, communications)
        if not batch:
            log.info("scan_nothing_new", communications=len(communications))
            return summarize(len(communications), [], None, message=NO_NEW_COMMUNICATIONS)

        try:
            result = await self._analyzer.analyze(batch, self._config.analysis_label)
        except AnalysisError as exc:
            log.error("scan_analysis_failed", communications=len(communications), error=str(exc))
            raise ScanFailed(
                FailureKind.ANALYSIS,
                ANALYSIS_FAILED,
                communications_count=len(communications),
            ) from exc

        insights = map_insights(result, account_id, run_at)

        try:
            await self._store.save(account_id, batch, insights)
        except Exception:
            log.exception("scan_store_failed", communications=len(batch), insights=len(insights))

        log.info(
            "scan_complete",
            communications=len(communications),
            analyzed=len(batch),
            insights=len(insights),
            sentiment_score=result.sentiment_score,
        )
        return summarize(len(communications), insights, result.sentiment_score)

    async def _unseen(self, account_id: str, communications: list[Communication]) -> list[Communication]:
        """Drop communications the store already holds, when configured to."""
        if not self._config.skip_seen_communications:
            return communications
        known = await self._store.known_external_ids(
            account_id,
            [c.external_id for c in communications],
        )
        if not known:
            return communications
        logger.debug("scan_dropped_seen", account_id=account_id, seen=len(known))
        return [c for c in communications if c.external_id not in known]
