"""
aaim.utils.config — Centralized configuration with YAML loading and defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


@dataclass
class ObservabilityConfig:
    log_dir: str = "logs"
    log_file: str = "aaim.jsonl"
    console_level: str = "INFO"
    json_logs: bool = True  # False = console only, nothing written to log_dir


@dataclass
class InterpreterConfig:
    history_size: int = 100  # transitions kept in AAIMInterpreter.history


@dataclass
class RuntimeConfig:
    """Wiring for ``python -m aaim``.

    Components are given as "package.module:attribute" strings; classes are
    instantiated without arguments.
    """

    model_path: str = "models/three_states.yaml"
    autostart: bool = True
    situation_factory: str = ""  # empty -> LoggingSituationFactory
    default_service: str = ""  # empty -> no default service
    services: dict[str, str] = field(default_factory=dict)
    context: dict[str, Any] = field(default_factory=dict)  # initial data context


@dataclass
class AAIMConfig:
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)
    interpreter: InterpreterConfig = field(default_factory=InterpreterConfig)
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    debug: bool = False

    @classmethod
    def load(cls, config_path: str = "config.yaml") -> "AAIMConfig":
        """Load configuration from YAML file, falling back to defaults."""
        config = cls()
        path = Path(config_path)
        if path.exists():
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            config = cls._merge(config, data)
        return config

    @classmethod
    def _merge(cls, config: "AAIMConfig", data: dict) -> "AAIMConfig":
        """Merge dict data into config dataclass recursively."""
        for section_name, section_data in data.items():
            if hasattr(config, section_name):
                section = getattr(config, section_name)
                if isinstance(section_data, dict) and hasattr(
                    section, "__dataclass_fields__"
                ):
                    for key, value in section_data.items():
                        if hasattr(section, key):
                            setattr(section, key, value)
                else:
                    setattr(config, section_name, section_data)
        return config

    def ensure_dirs(self):
        """Create the directories logging writes into."""
        if self.observability.json_logs:
            Path(self.observability.log_dir).mkdir(parents=True, exist_ok=True)
