"""
Gemini model gateway implementation (google-genai SDK).
"""

import asyncio
from typing import List, Optional, Sequence

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from core_intelligence.providers import ModelGatewayBase
from domain.models import PromptPart
from shared_utils.constants import Defaults, LogScope
from shared_utils.error_handler import UpstreamRejectedError, UpstreamUnavailableError


SERVICE_NAME = "Gemini"


class GeminiModelGateway(ModelGatewayBase):
    """Google Gemini gateway. One ``generate_content`` call per invocation, no retries."""

    def __init__(
        self,
        model_id: str,
        api_key: Optional[str],
        timeout_seconds: float = Defaults.REQUEST_TIMEOUT,
        client: Optional[genai.Client] = None,
    ):
        super().__init__(name=f"Gemini({model_id})")
        self.model_id = model_id
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self._client = client

    def initialize(self) -> None:
        """Create the Gemini client.

        A missing API key is tolerated here; invocations are then rejected
        the same way the provider would reject an unauthenticated request.
        """
        if self._client is not None:
            return
        if not self.api_key:
            self.logger.warning(
                "Gemini API key not configured",
                extra={"scope": LogScope.CONFIG, "model_id": self.model_id}
            )
            return
        try:
            self._client = genai.Client(
                api_key=self.api_key,
                http_options=types.HttpOptions(timeout=int(self.timeout_seconds * 1000)),
            )
            self.logger.info(
                "Initialized Gemini gateway",
                extra={"scope": LogScope.CONFIG, "model_id": self.model_id}
            )
        except Exception as e:
            self.logger.error(
                "Failed to initialize Gemini gateway",
                extra={"scope": LogScope.CONFIG, "error": str(e)}
            )
            raise

    def is_available(self) -> bool:
        """Check if the Gemini client exists."""
        return self._client is not None

    async def invoke(self, parts: Sequence[PromptPart]) -> str:
        """Send *parts* to Gemini and return the reply text ("" when empty)."""
        if not self.is_available():
            raise UpstreamRejectedError(
                SERVICE_NAME,
                "GEMINI_API_KEY is not configured",
                upstream_status=401,
            )

        contents = self._to_contents(parts)
        try:
            response = await self._client.aio.models.generate_content(
                model=self.model_id,
                contents=contents,
            )
        except genai_errors.APIError as e:
            self.logger.error(
                "Gemini rejected request",
                extra={"scope": LogScope.PROVIDER, "status": e.code, "error": str(e)}
            )
            raise UpstreamRejectedError(
                SERVICE_NAME, e.message or str(e), upstream_status=e.code
            ) from e
        except (httpx.HTTPError, OSError, asyncio.TimeoutError) as e:
            self.logger.error(
                "Gemini unreachable",
                extra={"scope": LogScope.PROVIDER, "error": str(e)}
            )
            raise UpstreamUnavailableError(SERVICE_NAME, str(e) or type(e).__name__) from e

        return response.text or ""

    @staticmethod
    def _to_contents(parts: Sequence[PromptPart]) -> List[types.Part]:
        contents: List[types.Part] = []
        for part in parts:
            if part.is_binary:
                contents.append(types.Part.from_bytes(data=part.data, mime_type=part.mime_type))
            else:
                contents.append(types.Part.from_text(text=part.text))
        return contents
