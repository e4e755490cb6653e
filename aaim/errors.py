"""
aaim.errors — Exceptions raised for configuration faults.

Execution errors raised by services are never wrapped: they propagate
unchanged through the awaitables returned by the behavior coordinator.
"""


class AAIMError(Exception):
    """Base class for all configuration faults raised by aaim."""


class ServiceConfigurationError(AAIMError):
    """Raised when a service call or state configuration cannot be executed."""


class ServiceRegistrationError(AAIMError):
    """Raised when a service cannot be registered with the behavior."""


class MethodNotProvidedError(AAIMError):
    """Raised when a service is asked to execute a method it does not provide."""

    def __init__(self, method: str):
        self.method = method
        super().__init__(f"Function '{method}' is not provided by this service.")


class ComponentLoadError(AAIMError):
    """Raised when a configured 'module:attribute' component cannot be loaded."""
