"""
Runtime container

Base class of the containers generated by PythonDumper. A generated
subclass declares PARAMETERS, ALIASES and a METHODS map (service id ->
factory method name); this class handles lookup, shared instances and
circular resolution.
"""

import importlib
import threading
from typing import Any, Dict, List, Set

from .exceptions import (
    CircularReferenceException,
    ParameterNotFoundException,
    ServiceNotFoundException,
    ContainerException,
)

_MISSING = object()


class Container:
    """Runtime service container"""

    PARAMETERS: Dict[str, Any] = {}
    ALIASES: Dict[str, str] = {}
    METHODS: Dict[str, str] = {}
    SHARED: Set[str] = set()

    def __init__(self):
        self._v_instances: Dict[str, Any] = {}
        self._v_loading: List[str] = []
        self._v_lock = threading.RLock()

    def get(self, service_id: str, default: Any = _MISSING) -> Any:
        """
        Return the service instance.

        Args:
            service_id: Service id or alias
            default: Returned instead of raising when the service is unknown

        Raises:
            ServiceNotFoundException: Unknown id and no default given
            CircularReferenceException: The service depends on itself
        """
        service_id = self.ALIASES.get(service_id, service_id)

        with self._v_lock:
            if service_id in self._v_instances:
                return self._v_instances[service_id]

            method_name = self.METHODS.get(service_id)
            if method_name is None:
                if default is not _MISSING:
                    return default
                raise ServiceNotFoundException(service_id)

            if service_id in self._v_loading:
                raise CircularReferenceException(self._v_loading + [service_id])

            self._v_loading.append(service_id)
            try:
                instance = getattr(self, method_name)()
            finally:
                self._v_loading.pop()

            if service_id in self.SHARED:
                self._v_instances[service_id] = instance
            return instance

    def has(self, service_id: str) -> bool:
        return self.ALIASES.get(service_id, service_id) in self.METHODS

    def initialized(self, service_id: str) -> bool:
        return self.ALIASES.get(service_id, service_id) in self._v_instances

    def get_service_ids(self) -> List[str]:
        return sorted(set(self.METHODS) | set(self.ALIASES))

    def get_parameter(self, name: str) -> Any:
        if name not in self.PARAMETERS:
            raise ParameterNotFoundException(name)
        return self.PARAMETERS[name]

    def has_parameter(self, name: str) -> bool:
        return name in self.PARAMETERS

    def reset(self) -> None:
        """Drop shared instances; they are rebuilt on next access."""
        with self._v_lock:
            self._v_instances.clear()

    @staticmethod
    def _load(path: str) -> Any:
        """Import 'package.module.Name' and return Name."""
        module_name, _, attribute = path.rpartition('.')
        try:
            module = importlib.import_module(module_name)
            return getattr(module, attribute)
        except (ImportError, AttributeError, ValueError) as e:
            raise ContainerException(f"Cannot import '{path}': {e}")

    def __str__(self) -> str:
        return f"{type(self).__name__}(services={len(self.METHODS)})"

    def __repr__(self) -> str:
        return self.__str__()
