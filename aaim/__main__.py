"""
AAIM interpreter — interactive runner.
Entry point: python -m aaim [config.yaml]
"""

import asyncio
import logging
import sys

from aaim.errors import AAIMError
from aaim.observability.logger import setup_logging
from aaim.runtime import AAIMRuntime
from aaim.utils.config import AAIMConfig

logger = logging.getLogger("aaim")


async def main(config_path: str = "config.yaml"):
    config = AAIMConfig.load(config_path)
    setup_logging(config.observability, debug=config.debug)

    try:
        runtime = AAIMRuntime(config)
    except AAIMError as e:
        logger.error("Invalid runtime configuration: %s", e)
        sys.exit(1)

    logger.info("Commands: run, pause, reset, state, quit; anything else fires an event")
    try:
        await runtime.start()
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt — shutting down")
        await runtime.stop()


def run():
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "config.yaml"))


if __name__ == "__main__":
    run()
