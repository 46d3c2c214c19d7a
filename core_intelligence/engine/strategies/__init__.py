from core_intelligence.engine.strategies.pacing import FixedDelayPacing, NoDelayPacing

__all__ = [
    "FixedDelayPacing",
    "NoDelayPacing",
]
