"""
aaim.situation.factory — Materialization of situations on state entry.
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)


class SituationFactory:
    """Creates and refreshes situations; does nothing by default.

    ``create`` is called when a state configuration is executed for the first
    time (or after another configuration was executed), ``refresh`` when the
    very same configuration object is executed again. Return values are
    ignored.
    """

    def create(self, situation: str, parameters: Any, context: dict[str, Any]):
        pass

    def refresh(self, situation: str, parameters: Any, context: dict[str, Any]):
        pass


class LoggingSituationFactory(SituationFactory):
    """Factory used by the runner when no factory is configured."""

    def create(self, situation, parameters, context):
        logger.info("Create situation '%s' with %r", situation, parameters)

    def refresh(self, situation, parameters, context):
        logger.info("Refresh situation '%s' with %r", situation, parameters)
