"""
aaim.core — State machine interpreter and behavior coordinator.
"""

from aaim.core.behavior import AAIMBehavior
from aaim.core.interpreter import AAIMInterpreter
from aaim.core.parameters import resolve_parameters

__all__ = [
    "AAIMBehavior",
    "AAIMInterpreter",
    "resolve_parameters",
]
