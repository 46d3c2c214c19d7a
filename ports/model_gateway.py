"""
Port interface for the external generative-model service.

Implementations: GeminiModelGateway, RetryingModelGateway
(core_intelligence/providers/).
"""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from domain.models import PromptPart


@runtime_checkable
class ModelGatewayPort(Protocol):
    """Abstract interface for one prompt → raw text model call."""

    async def invoke(self, parts: Sequence[PromptPart]) -> str:
        """Send *parts* to the model and return its raw text reply.

        Args:
            parts: Text parts and/or inline binary payloads, in order.

        Returns:
            The reply text, unmodified (may be empty).

        Raises:
            UpstreamUnavailableError: If the provider cannot be reached.
            UpstreamRejectedError: If the provider returns a non-success status.
        """
        ...
