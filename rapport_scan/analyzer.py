"""Batch analyzer gateway — one reasoning-engine call per run, strict response validation."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Sequence
from typing import Any, Protocol

import anthropic
import structlog
from pydantic import ValidationError

from rapport_schema import AnalysisResult, Communication, InsightType, Priority

from .config import AnalyzerConfig
from .errors import AnalysisError

logger = structlog.get_logger()

SYSTEM_PROMPT = (
    "You analyse business communications between an account manager and their "
    "clients. You identify relationship signals: clients going cold, renewal or "
    "churn risk, upsell opportunities, shifts in sentiment, promised follow-ups "
    "and positive feedback. You answer with a single JSON object and nothing else."
)

RESPONSE_CONTRACT = """Respond with JSON of exactly this shape:
{{
  "sentiment_score": <number from -1 (very negative) to 1 (very positive) for the whole batch>,
  "insights": [
    {{
      "type": one of {types},
      "priority": one of {priorities},
      "title": <short headline>,
      "description": <one or two sentences>,
      "context_quote": <verbatim excerpt from one message's content>,
      "confidence_score": <number from 0 to 1>,
      "client": <client name, company or email the insight is about, or null>
    }}
  ]
}}
Return an empty "insights" list when nothing is noteworthy."""


class ReasoningEngine(Protocol):
    """Opaque text-completion backend used by :class:`BatchAnalyzer`."""

    async def complete(self, system: str, prompt: str) -> str:
        """Return the engine's text answer for *prompt*."""
        ...


class AnthropicEngine:
    """:class:`ReasoningEngine` backed by the Anthropic Messages API."""

    def __init__(self, config: AnalyzerConfig) -> None:
        kwargs: dict[str, Any] = {"timeout": config.timeout_seconds}
        if config.api_key is not None:
            kwargs["api_key"] = config.api_key.get_secret_value()
        self._client = anthropic.AsyncAnthropic(**kwargs)
        self._model = config.model
        self._max_tokens = config.max_tokens

    async def complete(self, system: str, prompt: str) -> str:
        response = await self._client.messages.create(
            model=self._model,
            max_tokens=self._max_tokens,
            system=system,
            messages=[{"role": "user", "content": prompt}],
        )
        logger.debug(
            "reasoning_engine_response",
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )
        return "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )


class BatchAnalyzer:
    """Packages a communication batch, calls the engine once, validates the answer.

    Every failure (engine error, timeout, unparseable or mis-shaped
    response) is raised as :class:`AnalysisError`.  There is no partial
    result.
    """

    def __init__(self, engine: ReasoningEngine, *, timeout_seconds: float) -> None:
        self._engine = engine
        self._timeout_seconds = timeout_seconds

    async def analyze(self, communications: Sequence[Communication], label: str) -> AnalysisResult:
        if not communications:
            raise ValueError("analyze() needs a non-empty batch")

        prompt = build_prompt(communications, label)
        logger.info("analysis_started", label=label, communications=len(communications))

        try:
            async with asyncio.timeout(self._timeout_seconds):
                text = await self._engine.complete(SYSTEM_PROMPT, prompt)
        except TimeoutError as exc:
            raise AnalysisError(
                f"reasoning engine timed out after {self._timeout_seconds}s",
            ) from exc
        except anthropic.APIError as exc:
            raise AnalysisError(f"reasoning engine API error: {exc}") from exc
        except Exception as exc:
            raise AnalysisError(f"reasoning engine call failed: {exc}") from exc

        result = parse_analysis(text)
        logger.info(
            "analysis_complete",
            label=label,
            insights=len(result.insights),
            sentiment_score=result.sentiment_score,
        )
        return result


def serialize_batch(communications: Sequence[Communication]) -> list[dict[str, Any]]:
    """JSON-ready view of the batch; ``index`` lets the engine cite messages."""
    return [
        {
            "index": index,
            "source": c.integration_type.value,
            "external_id": c.external_id,
            "thread_id": c.thread_id,
            "timestamp": c.timestamp.isoformat(),
            "sender": c.sender_name,
            "sender_email": c.sender_email,
            "content": c.content,
        }
        for index, c in enumerate(communications)
    ]


def build_prompt(communications: Sequence[Communication], label: str) -> str:
    contract = RESPONSE_CONTRACT.format(
        types=", ".join(f'"{t.value}"' for t in InsightType),
        priorities=", ".join(f'"{p.value}"' for p in Priority),
    )
    batch = json.dumps(serialize_batch(communications), ensure_ascii=False, indent=2)
    return (
        f"Batch: {label}\n"
        f"Communications from the last scan window ({len(communications)} messages):\n"
        f"{batch}\n\n"
        f"{contract}"
    )


def parse_analysis(text: str) -> AnalysisResult:
    """Parse the first JSON object in *text* and validate it as an AnalysisResult.

    Tolerates prose or a fenced code block around the object.
    """
    start = text.find("{")
    if start == -1:
        raise AnalysisError("reasoning engine response contains no JSON object")
    try:
        data, _ = json.JSONDecoder().raw_decode(text, start)
    except json.JSONDecodeError as exc:
        raise AnalysisError(f"reasoning engine response is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise AnalysisError("reasoning engine response is not a JSON object")
    missing = [key for key in ("sentiment_score", "insights") if key not in data]
    if missing:
        raise AnalysisError(f"reasoning engine response missing {', '.join(missing)}")

    try:
        return AnalysisResult.model_validate(data)
    except ValidationError as exc:
        raise AnalysisError(
            f"reasoning engine response failed validation ({exc.error_count()} errors)",
        ) from exc
