"""
aaim.situation — Situation factory contract.
"""

from aaim.situation.factory import SituationFactory, LoggingSituationFactory

__all__ = ["SituationFactory", "LoggingSituationFactory"]
