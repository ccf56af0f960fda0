"""Tests for rapport_scan.retry."""

from __future__ import annotations

import httpx
import pytest

from rapport_scan.config import RetryConfig
from rapport_scan.retry import with_retry


class TestWithRetry:
    @pytest.mark.asyncio
    async def test_succeeds_first_try(self, retry_config: RetryConfig):
        call_count = 0

        @with_retry(retry_config)
        async def fn():
            nonlocal call_count
            call_count += 1
            return "ok"

        assert await fn() == "ok"
        assert call_count == 1

    @pytest.mark.asyncio
    async def test_retries_transport_errors_then_succeeds(self, retry_config: RetryConfig):
        call_count = 0

        @with_retry(retry_config)
        async def fn():
            nonlocal call_count
            call_count += 1
            if call_count < 3:
                raise httpx.ConnectError("connection reset")
            return "recovered"

        assert await fn() == "recovered"
        assert call_count == 3

    @pytest.mark.asyncio
    async def test_exhausts_retries_and_reraises(self, retry_config: RetryConfig):
        call_count = 0

        @with_retry(retry_config)
        async def fn():
            nonlocal call_count
            call_count += 1
            raise httpx.ReadTimeout("slow")

        with pytest.raises(httpx.ReadTimeout):
            await fn()
        assert call_count == 3

    @pytest.mark.asyncio
    async def test_non_transient_error_not_retried(self, retry_config: RetryConfig):
        call_count = 0

        @with_retry(retry_config)
        async def fn():
            nonlocal call_count
            call_count += 1
            raise ValueError("bad payload")

        with pytest.raises(ValueError):
            await fn()
        assert call_count == 1

    @pytest.mark.asyncio
    async def test_custom_retryable_exceptions(self, retry_config: RetryConfig):
        call_count = 0

        @with_retry(retry_config, retryable_exceptions=(ConnectionError,))
        async def fn():
            nonlocal call_count
            call_count += 1
            if call_count == 1:
                raise ConnectionError("transient")
            return "ok"

        assert await fn() == "ok"
        assert call_count == 2

    @pytest.mark.asyncio
    async def test_single_attempt(self):
        config = RetryConfig(max_attempts=1, initial_wait_seconds=0.01, max_wait_seconds=0.1)
        call_count = 0

        @with_retry(config)
        async def fn():
            nonlocal call_count
            call_count += 1
            raise httpx.ConnectError("fail")

        with pytest.raises(httpx.ConnectError):
            await fn()
        assert call_count == 1
