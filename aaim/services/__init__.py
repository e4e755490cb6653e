"""
aaim.services — Service contract, reference base class, and component loading.
"""

from aaim.services.base import AAIMService, ServiceProtocol
from aaim.services.loader import load_component

__all__ = ["AAIMService", "ServiceProtocol", "load_component"]
