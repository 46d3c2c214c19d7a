"""
Pacing strategies for consecutive upstream calls.

The analysis pipeline awaits ``pause()`` between steps; swapping the strategy
changes the rate-limit behaviour without touching orchestration.
"""

import asyncio

from domain.models import AnalysisKind


class FixedDelayPacing:
    """Sleep a fixed number of seconds between calls."""

    def __init__(self, seconds: float = 1.0):
        if seconds < 0:
            raise ValueError(f"seconds must be >= 0, got {seconds}")
        self.seconds = seconds

    async def pause(self, completed: AnalysisKind) -> None:
        if self.seconds:
            await asyncio.sleep(self.seconds)


class NoDelayPacing:
    """Pass-through pacing (tests, providers without rate limits)."""

    async def pause(self, completed: AnalysisKind) -> None:
        return None
