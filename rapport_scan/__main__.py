"""Entry point: ``python -m rapport_scan`` or the ``rapport-scan`` script."""

from __future__ import annotations

import structlog
import uvicorn

from .config import Settings
from .logging import setup_logging

logger = structlog.get_logger()


def main() -> None:
    settings = Settings()  # type: ignore[call-arg]
    setup_logging(json=settings.log_json, level=settings.log_level)
    logger.info(
        "scan_service_starting",
        host=settings.host,
        port=settings.port,
        model=settings.analyzer.model,
        lookback_hours=settings.scan.lookback_hours,
        integrations_file=settings.integrations_file,
    )

    # The factory re-reads Settings from the environment in the server process
    uvicorn.run(
        "rapport_scan.api:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        log_config=None,
    )


if __name__ == "__main__":
    main()
