"""
aaim.utils — Shared configuration, enumerations, and document types.
"""

from aaim.utils.enums import ParameterSource, RunnerCommand
from aaim.utils.config import AAIMConfig
from aaim.utils.types import classify_parameters

__all__ = [
    "ParameterSource",
    "RunnerCommand",
    "AAIMConfig",
    "classify_parameters",
]
