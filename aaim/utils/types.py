"""
aaim.utils.types — Typed views of the interaction model document.

Model documents are plain dicts and lists (parsed from YAML/JSON or built
in code). These TypedDicts only describe their shape; nothing here copies
or validates a document.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypedDict

from aaim.utils.enums import ParameterSource

# A literal value or a "${identifier.path}" reference into the data context
Param = Any


class ServiceCallConfig(TypedDict, total=False):
    service: str  # omitted -> default service
    name: str
    parameters: list[Param] | ServiceCallConfig
    parameterMapping: list[ServiceCallConfig]
    resultMapping: ServiceCallConfig


class StateBehavior(TypedDict, total=False):
    situation: str
    parameters: list[Param] | ServiceCallConfig
    parameterMapping: list[ServiceCallConfig]


class Event(TypedDict, total=False):
    on: str
    goto: str
    do: ServiceCallConfig


class State(TypedDict, total=False):
    name: str
    do: StateBehavior
    events: list[Event]


class InteractionModel(TypedDict, total=False):
    initial: str
    states: list[State]


def classify_parameters(value: Any) -> ParameterSource:
    """Tag a ``parameters`` entry as a literal list, a nested call, or absent."""
    if isinstance(value, (list, tuple)):
        return ParameterSource.LITERAL
    if isinstance(value, Mapping):
        return ParameterSource.DERIVED
    return ParameterSource.NONE


def is_call_config(value: Any) -> bool:
    return isinstance(value, Mapping)
