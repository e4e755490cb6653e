"""
aaim.services.base — Service contract and reference base class.

A service is anything with ``provides(method)`` and ``execute(method, *params)``.
The behavior coordinator only relies on that structural contract; AAIMService
is a convenience base that keeps provided functions in a name → callable map
and always hands back an awaitable.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Protocol, runtime_checkable

from aaim.errors import MethodNotProvidedError

logger = logging.getLogger(__name__)


@runtime_checkable
class ServiceProtocol(Protocol):
    """Capability interface every registered service has to implement."""

    def provides(self, method: str) -> bool: ...

    def execute(self, method: str, *params: Any) -> Awaitable[Any]: ...


class AAIMService:
    """Base class for configurable services usable in ``do`` configurations.

    Subclasses expose functions in ``__init__``::

        class Greeter(AAIMService):
            def __init__(self):
                super().__init__()
                self.expose("greet", self.greet)

            def greet(self, name):
                return f"Hello {name}"
    """

    def __init__(self):
        self._functions: dict[str, Callable[..., Any]] = {}

    def expose(self, name: str, function: Optional[Callable[..., Any]] = None):
        """Provide ``function`` under ``name``; usable as a decorator factory."""

        def _register(fn: Callable[..., Any]) -> Callable[..., Any]:
            self._functions[name] = fn
            logger.debug("%s provides '%s'", type(self).__name__, name)
            return fn

        if function is None:
            return _register
        return _register(function)

    def provides(self, method: str) -> bool:
        return method in self._functions

    def execute(self, method: str, *params: Any) -> asyncio.Future:
        """Call a provided function by name.

        Returned awaitables are forwarded, plain return values are wrapped into
        a resolved future and raised exceptions into a failed one. Must be
        called with a running event loop.

        Raises:
            MethodNotProvidedError: if no function named ``method`` is provided.
        """
        if method not in self._functions:
            raise MethodNotProvidedError(method)

        loop = asyncio.get_running_loop()
        try:
            value = self._functions[method](*params)
        except Exception as e:
            failed = loop.create_future()
            failed.set_exception(e)
            return failed

        if inspect.isawaitable(value):
            return asyncio.ensure_future(value)

        resolved = loop.create_future()
        resolved.set_result(value)
        return resolved
