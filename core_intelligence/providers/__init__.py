"""
Model provider base classes.

A provider is built from settings, then ``initialize()``d once by the factory;
``is_available()`` reports whether it can serve requests.
"""

from abc import ABC, abstractmethod
from typing import Sequence
import logging

from domain.models import PromptPart


class BaseProvider(ABC):
    """Lifecycle shared by every external provider."""

    def __init__(self, name: str):
        self.name = name
        self.logger = logging.getLogger(f"{type(self).__module__}.{type(self).__name__}")

    @abstractmethod
    def initialize(self) -> None:
        """Create clients; called once after construction."""

    @abstractmethod
    def is_available(self) -> bool:
        """True when credentials are present and a client exists."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name} available={self.is_available()}>"


class ModelGatewayBase(BaseProvider):
    """Generative-model provider implementing ``ports.model_gateway``."""

    @abstractmethod
    async def invoke(self, parts: Sequence[PromptPart]) -> str:
        """Send prompt parts to the model and return its raw text reply."""
