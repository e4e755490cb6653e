"""
aaim.core.behavior — Coordinator of the behavior on state entry and transitions.

Turns declarative ``do`` configurations into service calls:

  - parameters are either literal lists (with ``${...}`` references into the
    shared data context) or the result of another service call
  - parameters can be mapped one by one through further service calls
  - results can be mapped through a further service call
  - state configurations end in ``SituationFactory.create`` or ``refresh``

Configuration faults (malformed call configs, unknown services or methods)
are raised synchronously, before any asynchronous work is scheduled.
Errors raised by services propagate through the returned awaitables.
All entry points must be called from a running event loop.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Optional

from aaim.core.parameters import resolve_parameters
from aaim.errors import ServiceConfigurationError, ServiceRegistrationError
from aaim.services.base import ServiceProtocol
from aaim.situation.factory import SituationFactory
from aaim.utils.enums import ParameterSource
from aaim.utils.types import (
    ServiceCallConfig,
    StateBehavior,
    classify_parameters,
    is_call_config,
)

logger = logging.getLogger(__name__)

# Registry slot of the service used by calls without a 'service' name
DEFAULT_SERVICE = ""


class AAIMBehavior:
    """Executes state and transition configurations of an interaction model.

    Args:
        situation_factory: Receives the resolved state configurations. May be
            None, in which case parameters are still resolved but nothing is
            materialized.
        default_service: Service used for call configurations without a
            ``service`` name, may be None.
    """

    def __init__(
        self,
        situation_factory: Optional[SituationFactory] = None,
        default_service: Optional[ServiceProtocol] = None,
    ):
        self._factory = situation_factory
        self._services: dict[str, ServiceProtocol] = {}
        if default_service is not None:
            self._services[DEFAULT_SERVICE] = default_service

        # Shared by reference with services and the factory, never replaced
        self._data: dict[str, Any] = {}

        # Last executed state configuration, compared by identity
        self._current_config: Optional[StateBehavior] = None

    # ── Public API ────────────────────────────────────────────────────────

    @property
    def data(self) -> dict[str, Any]:
        """The data context ``${...}`` references are resolved against."""
        return self._data

    @property
    def services(self) -> Mapping[str, ServiceProtocol]:
        """Read-only view of the registered services."""
        return MappingProxyType(self._services)

    def get_service(self, name: Optional[str] = None) -> Optional[ServiceProtocol]:
        """Return the service registered as ``name`` (default service if empty)."""
        return self._services.get(name or DEFAULT_SERVICE)

    def register_service(self, name: str, service: ServiceProtocol):
        """Register ``service`` under a non-empty, unused ``name``.

        Raises:
            ServiceRegistrationError: if the name is empty or taken, or the
                service has no callable ``execute``.
        """
        if not name or not isinstance(name, str):
            raise ServiceRegistrationError(
                "A service cannot be registered without a name."
            )
        if service is None or not callable(getattr(service, "execute", None)):
            raise ServiceRegistrationError(
                "Services are required to provide an 'execute' function."
            )
        if name in self._services:
            raise ServiceRegistrationError(
                f"There is already a service named '{name}'."
            )

        self._services[name] = service
        logger.info("Registered service '%s' (%s)", name, type(service).__name__)

    def execute_state(self, config: Optional[StateBehavior]) -> asyncio.Future:
        """Resolve a state configuration and hand it to the situation factory.

        The factory's ``refresh`` is used if ``config`` is the very object
        executed last, ``create`` otherwise.

        Returns:
            The task resolving the parameters and calling the factory.

        Raises:
            ServiceConfigurationError: if the configuration cannot be executed.
        """
        if config is None:
            logger.debug("State without behavior, nothing to materialize")
            return self._resolved(None)
        if not isinstance(config, Mapping):
            raise ServiceConfigurationError(
                "Invalid state configuration: expected a mapping, "
                f"got {type(config).__name__}!"
            )

        if classify_parameters(config.get("parameters")) is ParameterSource.DERIVED:
            self._check_call(config["parameters"])
        self._check_mapping_list(config.get("parameterMapping"))

        return asyncio.ensure_future(self._materialize(config))

    def execute_transition(self, config: Optional[ServiceCallConfig]) -> asyncio.Future:
        """Perform the service call of a transition.

        Returns:
            A future of the call's result, already resolved with None if
            there is nothing to call.

        Raises:
            ServiceConfigurationError: if the configuration cannot be executed.
        """
        if is_call_config(config):
            return self._call_service(config)
        return self._resolved(None)

    # ── Parameters ────────────────────────────────────────────────────────

    def _resolve_parameters(self, parameters: list[Any]) -> list[Any]:
        return resolve_parameters(parameters, self._data)

    async def _fetch_parameters(
        self, config: Mapping[str, Any], default_parameters: Optional[list] = None
    ) -> Any:
        source = classify_parameters(config.get("parameters"))
        if source is ParameterSource.LITERAL:
            return self._resolve_parameters(config["parameters"])
        if source is ParameterSource.DERIVED:
            return await self._invoke(config["parameters"])
        if isinstance(default_parameters, list):
            return list(default_parameters)
        return []

    async def _map_parameters(self, mapping: Any, parameters: list[Any]) -> list[Any]:
        """Map parameters index by index; unmapped indices pass through."""
        if not isinstance(mapping, (list, tuple)) or not mapping:
            return parameters

        async def _map_one(index: int, value: Any) -> Any:
            if index < len(mapping) and is_call_config(mapping[index]):
                return await self._invoke(mapping[index], [value])
            return value

        return list(
            await asyncio.gather(
                *(_map_one(index, value) for index, value in enumerate(parameters))
            )
        )

    # ── Service calls ─────────────────────────────────────────────────────

    def _call_service(
        self, config: ServiceCallConfig, default_parameters: Optional[list] = None
    ) -> asyncio.Future:
        """Validate a call configuration and schedule its execution.

        Args:
            config: The service call configuration.
            default_parameters: Parameters used if ``config`` configures none.

        Raises:
            ServiceConfigurationError: if ``config`` or any configuration
                nested in it cannot be executed.
        """
        self._check_call(config)
        return asyncio.ensure_future(self._invoke(config, default_parameters))

    async def _invoke(
        self, config: ServiceCallConfig, default_parameters: Optional[list] = None
    ) -> Any:
        service = self._lookup(config)
        name = config["name"]

        parameters = await self._fetch_parameters(config, default_parameters)
        if classify_parameters(config.get("parameters")) is ParameterSource.DERIVED:
            parameters = [parameters]
        parameters = await self._map_parameters(
            config.get("parameterMapping"), parameters
        )

        logger.debug(
            "Calling %s.%s with %r", config.get("service") or "<default>", name, parameters
        )
        result = await service.execute(name, *parameters)

        result_mapping = config.get("resultMapping")
        if is_call_config(result_mapping):
            result = await self._invoke(result_mapping, [result])
        return result

    async def _materialize(self, config: StateBehavior):
        parameters = await self._fetch_parameters(config)
        if isinstance(parameters, list):
            parameters = await self._map_parameters(
                config.get("parameterMapping"), parameters
            )

        situation = config.get("situation")
        if self._current_config is config:
            logger.debug("Refreshing situation '%s'", situation)
            if self._factory is not None:
                self._factory.refresh(situation, parameters, self._data)
        else:
            logger.debug("Creating situation '%s'", situation)
            if self._factory is not None:
                self._factory.create(situation, parameters, self._data)
            self._current_config = config

    # ── Validation ────────────────────────────────────────────────────────

    def _lookup(self, config: Any) -> ServiceProtocol:
        """Check one call configuration and return the service it targets."""
        if not isinstance(config, Mapping):
            raise ServiceConfigurationError("No service configuration object provided!")

        name = config.get("name")
        if not isinstance(name, str) or not name:
            raise ServiceConfigurationError(
                "Invalid service configuration: 'name' is required!"
            )
        service_name = config.get("service")
        if service_name is not None and (
            not isinstance(service_name, str) or not service_name
        ):
            raise ServiceConfigurationError(
                "Invalid service configuration: 'service' has to be a "
                "non-empty string, if defined!"
            )

        service = self._services.get(service_name or DEFAULT_SERVICE)
        if service is None:
            missing = (
                f"service named '{service_name}'" if service_name else "default service"
            )
            raise ServiceConfigurationError(
                f"Invalid service configuration: There is no {missing}!"
            )
        if not service.provides(name):
            owner = f"Service '{service_name}'" if service_name else "Default service"
            raise ServiceConfigurationError(
                f"Invalid service configuration: {owner} does not provide "
                f"a method '{name}'!"
            )
        return service

    def _check_call(self, config: Any):
        """Validate ``config`` and every call configuration nested in it."""
        self._lookup(config)
        if classify_parameters(config.get("parameters")) is ParameterSource.DERIVED:
            self._check_call(config["parameters"])
        self._check_mapping_list(config.get("parameterMapping"))
        if is_call_config(config.get("resultMapping")):
            self._check_call(config["resultMapping"])

    def _check_mapping_list(self, mapping: Any):
        if isinstance(mapping, (list, tuple)):
            for entry in mapping:
                if is_call_config(entry):
                    self._check_call(entry)

    def _resolved(self, value: Any) -> asyncio.Future:
        future = asyncio.get_running_loop().create_future()
        future.set_result(value)
        return future
