"""
aaim.observability — Structured logging.
"""

from aaim.observability.logger import setup_logging, JSONFormatter

__all__ = ["setup_logging", "JSONFormatter"]
