"""
Tests for core_intelligence.providers.retrying_gateway.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from core_intelligence.providers.retrying_gateway import RetryingModelGateway, is_transient
from domain.models import PromptPart
from shared_utils.error_handler import (
    UpstreamRejectedError,
    UpstreamUnavailableError,
    ValidationError,
)


PARTS = [PromptPart.from_text("hi")]


def _retrying(inner, attempts=3) -> RetryingModelGateway:
    return RetryingModelGateway(inner, max_attempts=attempts, wait_min=0, wait_max=0)


# ---------------------------------------------------------------------------
# is_transient
# ---------------------------------------------------------------------------


class TestIsTransient:
    def test_unavailable_is_transient(self) -> None:
        assert is_transient(UpstreamUnavailableError("Gemini", "down")) is True

    @pytest.mark.parametrize("status", [429, 500, 503])
    def test_retryable_statuses(self, status: int) -> None:
        assert is_transient(UpstreamRejectedError("Gemini", "x", upstream_status=status)) is True

    @pytest.mark.parametrize("status", [400, 401, 403, None])
    def test_client_errors_not_transient(self, status) -> None:
        assert is_transient(UpstreamRejectedError("Gemini", "x", upstream_status=status)) is False

    def test_other_errors_not_transient(self) -> None:
        assert is_transient(ValidationError("bad")) is False
        assert is_transient(RuntimeError("bug")) is False


# ---------------------------------------------------------------------------
# invoke
# ---------------------------------------------------------------------------


class TestRetryingInvoke:
    def test_success_first_try(self) -> None:
        inner = AsyncMock()
        inner.invoke = AsyncMock(return_value="ok")

        assert asyncio.run(_retrying(inner).invoke(PARTS)) == "ok"
        inner.invoke.assert_awaited_once_with(PARTS)

    def test_transient_failure_then_success(self) -> None:
        inner = AsyncMock()
        inner.invoke = AsyncMock(side_effect=[UpstreamUnavailableError("Gemini", "reset"), "ok"])

        assert asyncio.run(_retrying(inner).invoke(PARTS)) == "ok"
        assert inner.invoke.await_count == 2

    def test_gives_up_after_max_attempts(self) -> None:
        inner = AsyncMock()
        inner.invoke = AsyncMock(
            side_effect=UpstreamRejectedError("Gemini", "busy", upstream_status=503)
        )

        with pytest.raises(UpstreamRejectedError):
            asyncio.run(_retrying(inner, attempts=3).invoke(PARTS))
        assert inner.invoke.await_count == 3

    def test_non_transient_not_retried(self) -> None:
        inner = AsyncMock()
        inner.invoke = AsyncMock(
            side_effect=UpstreamRejectedError("Gemini", "bad key", upstream_status=401)
        )

        with pytest.raises(UpstreamRejectedError):
            asyncio.run(_retrying(inner).invoke(PARTS))
        assert inner.invoke.await_count == 1

    def test_single_attempt_disables_retries(self) -> None:
        inner = AsyncMock()
        inner.invoke = AsyncMock(side_effect=UpstreamUnavailableError("Gemini", "down"))

        with pytest.raises(UpstreamUnavailableError):
            asyncio.run(_retrying(inner, attempts=1).invoke(PARTS))
        assert inner.invoke.await_count == 1
