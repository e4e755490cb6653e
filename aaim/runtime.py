"""
aaim.runtime — Wires configuration, services, factory and interpreter together
and drives an interactive command loop.
"""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import Any, Optional

import yaml

from aaim.core.behavior import AAIMBehavior
from aaim.core.interpreter import AAIMInterpreter
from aaim.errors import AAIMError
from aaim.services.loader import load_component
from aaim.situation.factory import LoggingSituationFactory
from aaim.utils.config import AAIMConfig, RuntimeConfig
from aaim.utils.enums import RunnerCommand

logger = logging.getLogger(__name__)

_BOOL_TAG = "tag:yaml.org,2002:bool"


class ModelLoader(yaml.SafeLoader):
    """SafeLoader with YAML 1.2 booleans, so keys like `on` stay strings."""


ModelLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _BOOL_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
ModelLoader.add_implicit_resolver(
    _BOOL_TAG,
    re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"),
    list("tTfF"),
)


def build_behavior(runtime: RuntimeConfig) -> AAIMBehavior:
    """Create an AAIMBehavior with the factory and services named in ``runtime``."""
    factory = (
        load_component(runtime.situation_factory)
        if runtime.situation_factory
        else LoggingSituationFactory()
    )
    default_service = (
        load_component(runtime.default_service) if runtime.default_service else None
    )

    behavior = AAIMBehavior(factory, default_service)
    for name, reference in runtime.services.items():
        behavior.register_service(name, load_component(reference))
    behavior.data.update(runtime.context)
    return behavior


def read_model(path: str) -> Optional[Any]:
    """Read a model document from a YAML (or JSON) file, None if unreadable."""
    model_path = Path(path)
    if not model_path.is_file():
        logger.error("Model file not found: %s", model_path)
        return None
    try:
        with open(model_path, "r", encoding="utf-8") as f:
            return yaml.load(f, Loader=ModelLoader)
    except yaml.YAMLError as e:
        logger.error("Cannot parse model file %s: %s", model_path, e)
        return None


class AAIMRuntime:
    """
    Top-level runner — builds the behavior and interpreter from configuration
    and feeds typed commands and events into the interpreter.
    """

    def __init__(self, config: AAIMConfig):
        self.config = config
        self.behavior = build_behavior(config.runtime)
        self.interpreter = AAIMInterpreter(
            self.behavior, history_size=config.interpreter.history_size
        )
        self._running = False

    def load_model(self, path: Optional[str] = None) -> bool:
        model = read_model(path or self.config.runtime.model_path)
        if model is None:
            return False
        return self.interpreter.load(model)

    async def handle_command(self, text: str) -> bool:
        """Apply one line of input. Returns False once the runner should stop."""
        text = text.strip()
        if not text:
            return True

        command = RunnerCommand.parse(text)
        try:
            if command in (RunnerCommand.QUIT, RunnerCommand.EXIT):
                logger.info("Exit command received")
                return False
            if command is RunnerCommand.RUN:
                self.interpreter.running = True
            elif command is RunnerCommand.PAUSE:
                self.interpreter.running = False
            elif command is RunnerCommand.RESET:
                self.interpreter.reset()
            elif command is None:
                self.interpreter.execute_event(text)
        except AAIMError as e:
            logger.error("Cannot execute '%s': %s", text, e)

        await self.interpreter.drain()
        state = self.interpreter.state
        logger.info(
            "Current state: %s (%s)",
            state.get("name") if state else None,
            "running" if self.interpreter.running else "paused",
        )
        return True

    async def start(self):
        """Load the configured model and process stdin until told to quit."""
        self.config.ensure_dirs()
        if not self.load_model():
            logger.error("No usable model, nothing to run")
            return

        self._running = True
        if self.config.runtime.autostart:
            await self.handle_command(RunnerCommand.RUN.value)

        await self._input_loop()

    async def stop(self):
        self._running = False
        self.interpreter.running = False
        await self.interpreter.drain()
        logger.info("=== AAIM runtime stopped ===")

    async def _input_loop(self):
        """Read commands and event names from stdin."""
        loop = asyncio.get_running_loop()

        def _read_line():
            try:
                return input("aaim> ")
            except (EOFError, KeyboardInterrupt):
                return None

        while self._running:
            text = await loop.run_in_executor(None, _read_line)
            if text is None or not await self.handle_command(text):
                break
        await self.stop()
