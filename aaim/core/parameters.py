"""
aaim.core.parameters — Resolution of parameter lists against the data context.

A parameter is either a literal value or a reference string such as
``"${user}"`` or ``"${user.address.city}"``. References are looked up in the
data context; dotted paths navigate mappings by key and sequences by index.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any, Iterable

_REFERENCE = re.compile(r"\$\{([\w.]+)\}", re.ASCII)


def _step(value: Any, key: str) -> Any:
    """Navigate one path segment; anything not navigable yields None."""
    if isinstance(value, Mapping):
        return value.get(key)
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        if not key.isdecimal():
            return None
        index = int(key)
        return value[index] if index < len(value) else None
    return None


def resolve_reference(path: str, context: Mapping[str, Any]) -> Any:
    """Look up a dotted ``path`` in ``context``. Missing keys resolve to None."""
    head, *steps = path.split(".")
    value = context.get(head)
    for key in steps:
        if value is None:
            break
        value = _step(value, key)
    return value


def resolve_parameter(param: Any, context: Mapping[str, Any]) -> Any:
    if not isinstance(param, str):
        return param
    match = _REFERENCE.search(param)
    if match is None:
        return param
    return resolve_reference(match.group(1), context)


def resolve_parameters(
    parameters: Iterable[Any], context: Mapping[str, Any]
) -> list[Any]:
    """Resolve every entry of ``parameters``, keeping order and length."""
    return [resolve_parameter(param, context) for param in parameters]
