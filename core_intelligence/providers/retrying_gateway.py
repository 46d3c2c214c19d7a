"""
Retry decorator for model gateways.

Wraps any ModelGatewayPort with tenacity exponential backoff. Only transient
failures are retried: unreachable provider, HTTP 429 and 5xx rejections.
"""

from typing import Sequence

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from domain.models import PromptPart
from ports.model_gateway import ModelGatewayPort
from shared_utils.constants import Defaults, LogScope
from shared_utils.error_handler import UpstreamRejectedError, UpstreamUnavailableError
from shared_utils.logging_utils import get_scoped_logger


logger = get_scoped_logger(LogScope.PROVIDER)

RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})


def is_transient(exc: BaseException) -> bool:
    """True for failures worth another attempt."""
    if isinstance(exc, UpstreamUnavailableError):
        return True
    if isinstance(exc, UpstreamRejectedError):
        return exc.upstream_status in RETRYABLE_STATUSES
    return False


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "upstream_retry",
        attempt=retry_state.attempt_number,
        error=str(exc),
    )


class RetryingModelGateway:
    """ModelGatewayPort decorator adding bounded exponential backoff."""

    def __init__(
        self,
        inner: ModelGatewayPort,
        max_attempts: int = Defaults.MAX_RETRIES,
        wait_min: float = Defaults.RETRY_WAIT_MIN_SECONDS,
        wait_max: float = Defaults.RETRY_WAIT_MAX_SECONDS,
    ) -> None:
        self._inner = inner
        self.max_attempts = max_attempts
        self.wait_min = wait_min
        self.wait_max = wait_max

    async def invoke(self, parts: Sequence[PromptPart]) -> str:
        """Invoke the wrapped gateway, retrying transient failures."""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=1, min=self.wait_min, max=self.wait_max),
            retry=retry_if_exception(is_transient),
            before_sleep=_log_retry,
            reraise=True,
        )
        return await retrying(self._inner.invoke, parts)
