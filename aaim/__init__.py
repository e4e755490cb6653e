"""
aaim — Interpreter for Abstract Application Interaction Models.
"""

from aaim.core.behavior import AAIMBehavior
from aaim.core.interpreter import AAIMInterpreter
from aaim.services.base import AAIMService, ServiceProtocol
from aaim.situation.factory import SituationFactory

__version__ = "0.1.0"

__all__ = [
    "AAIMBehavior",
    "AAIMInterpreter",
    "AAIMService",
    "ServiceProtocol",
    "SituationFactory",
]
