"""
bootstrap/container.py - Dependency injection container

Holds the process-wide services (config, application context, the Database)
so the API and CLI receive one shared engine instead of reaching for globals.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Set, Type, TypeVar
import inspect
import logging
import threading

logger = logging.getLogger("bootstrap.container")

T = TypeVar('T')


@dataclass
class ServiceDescriptor:
    """Describes a registered service."""

    service_type: Type
    factory: Optional[Callable] = None
    instance: Any = None


class CircularDependencyError(Exception):
    """Raised when a circular dependency is detected."""
    pass


class ServiceNotFoundError(Exception):
    """Raised when a service is not registered."""
    pass


class Container:
    """
    Dependency injection container.

    Every service is a singleton: factories run on first resolve and the
    result is cached. Factory parameters annotated with a registered type
    are injected.
    """

    def __init__(self):
        self._services: Dict[Type, ServiceDescriptor] = {}
        self._resolving: Set[Type] = set()
        self._lock = threading.RLock()

    def register_factory(
        self,
        service_type: Type[T],
        factory: Callable[..., T],
    ) -> "Container":
        """Register a service built by a factory function."""
        with self._lock:
            self._services[service_type] = ServiceDescriptor(
                service_type=service_type,
                factory=factory,
            )
        return self

    def register_instance(self, service_type: Type[T], instance: T) -> "Container":
        """Register an existing instance as singleton."""
        with self._lock:
            self._services[service_type] = ServiceDescriptor(
                service_type=service_type,
                instance=instance,
            )
        return self

    def resolve(self, service_type: Type[T]) -> T:
        """
        Resolve a service instance.

        Raises:
            ServiceNotFoundError: If service not registered
            CircularDependencyError: If circular dependency detected
        """
        with self._lock:
            if service_type not in self._services:
                raise ServiceNotFoundError(f"Service not registered: {service_type.__name__}")

            descriptor = self._services[service_type]

            if descriptor.instance is not None:
                return descriptor.instance

            if service_type in self._resolving:
                chain = " -> ".join(t.__name__ for t in self._resolving)
                raise CircularDependencyError(
                    f"Circular dependency detected: {chain} -> {service_type.__name__}"
                )

            self._resolving.add(service_type)
            try:
                instance = self._call_with_dependencies(descriptor.factory)
                descriptor.instance = instance
                logger.debug(f"Created singleton {service_type.__name__}")
                return instance
            finally:
                self._resolving.discard(service_type)

    def _call_with_dependencies(self, callable_obj: Callable) -> Any:
        """Call a factory, injecting registered parameter types."""
        kwargs = {}

        try:
            signature = inspect.signature(callable_obj, eval_str=True)
        except NameError:
            signature = inspect.signature(callable_obj)

        for param_name, param in signature.parameters.items():
            if self.is_registered(param.annotation):
                kwargs[param_name] = self.resolve(param.annotation)

        return callable_obj(**kwargs)

    def is_registered(self, service_type: Type) -> bool:
        """Check if a service type is registered."""
        return service_type in self._services

