"""
Port interface for pacing consecutive upstream calls.

Implementations: FixedDelayPacing, NoDelayPacing
(core_intelligence/engine/strategies/pacing.py)
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from domain.models import AnalysisKind


@runtime_checkable
class PacingPort(Protocol):
    """Decides how long to suspend between two analysis calls."""

    async def pause(self, completed: AnalysisKind) -> None:
        """Suspend after *completed* finished and before the next call starts."""
        ...
