"""
Container builder module

ContainerBuilder collects parameters, service definitions, aliases and
compiler passes. compile() runs the passes and validates the graph; after
that the builder is frozen and can be dumped.
"""

from typing import Any, Dict, List, Optional, Tuple

from dibuild.logging import get_logger

from .definition import Definition
from .passes import default_passes
from .exceptions import (
    FrozenContainerException,
    CircularReferenceException,
    ServiceNotFoundException,
    ParameterNotFoundException,
    InvalidDefinitionException,
)

logger = get_logger(__name__)


class ContainerBuilder:
    """Container builder class"""

    def __init__(self, parameters: Optional[Dict[str, Any]] = None):
        self._v_parameters: Dict[str, Any] = dict(parameters or {})
        self._v_definitions: Dict[str, Definition] = {}
        self._v_aliases: Dict[str, str] = {}
        self._v_passes: List[Tuple[int, int, Any]] = []
        self._v_resources: List[str] = []
        self._v_is_compiled = False

    # -- parameters ---------------------------------------------------------

    def set_parameter(self, name: str, value: Any) -> 'ContainerBuilder':
        self._assert_not_compiled("set a parameter")
        self._v_parameters[name] = value
        return self

    def get_parameter(self, name: str) -> Any:
        if name not in self._v_parameters:
            raise ParameterNotFoundException(name)
        return self._v_parameters[name]

    def has_parameter(self, name: str) -> bool:
        return name in self._v_parameters

    def get_parameters(self) -> Dict[str, Any]:
        return dict(self._v_parameters)

    def replace_parameters(self, parameters: Dict[str, Any]) -> None:
        """Used by the parameter resolution pass."""
        self._assert_not_compiled("replace parameters")
        self._v_parameters = dict(parameters)

    # -- definitions --------------------------------------------------------

    def set_definition(self, service_id: str, definition: Definition) -> Definition:
        """Register a service definition, replacing any previous one."""
        self._assert_not_compiled("set a definition")
        if not service_id:
            raise InvalidDefinitionException("service id cannot be empty")
        definition.validate(service_id)
        if service_id in self._v_definitions:
            logger.debug("Service '%s' redefined by %s", service_id, definition.file or '<code>')
        self._v_aliases.pop(service_id, None)
        self._v_definitions[service_id] = definition
        return definition

    def register(self, service_id: str, class_: Optional[str] = None, **kwargs) -> Definition:
        """Shortcut: register a service by class path, class defaults to the id."""
        return self.set_definition(service_id, Definition(class_=class_ or service_id, **kwargs))

    def has_definition(self, service_id: str) -> bool:
        return service_id in self._v_definitions

    def get_definition(self, service_id: str) -> Definition:
        if service_id not in self._v_definitions:
            raise ServiceNotFoundException(service_id)
        return self._v_definitions[service_id]

    def get_definitions(self) -> Dict[str, Definition]:
        return dict(self._v_definitions)

    def remove_definition(self, service_id: str) -> bool:
        self._assert_not_compiled("remove a definition")
        return self._v_definitions.pop(service_id, None) is not None

    # -- aliases ------------------------------------------------------------

    def set_alias(self, alias: str, service_id: str) -> 'ContainerBuilder':
        self._assert_not_compiled("set an alias")
        if alias == service_id:
            raise InvalidDefinitionException(f"alias '{alias}' points to itself", alias)
        self._v_definitions.pop(alias, None)
        self._v_aliases[alias] = service_id
        return self

    def get_alias(self, alias: str) -> str:
        if alias not in self._v_aliases:
            raise ServiceNotFoundException(alias)
        return self._v_aliases[alias]

    def has_alias(self, alias: str) -> bool:
        return alias in self._v_aliases

    def get_aliases(self) -> Dict[str, str]:
        return dict(self._v_aliases)

    def remove_alias(self, alias: str) -> bool:
        self._assert_not_compiled("remove an alias")
        return self._v_aliases.pop(alias, None) is not None

    def has(self, service_id: str) -> bool:
        return service_id in self._v_definitions or service_id in self._v_aliases

    def find_definition(self, service_id: str) -> Definition:
        """Resolve aliases, then return the definition."""
        seen = []
        while service_id in self._v_aliases:
            if service_id in seen:
                raise CircularReferenceException(seen + [service_id])
            seen.append(service_id)
            service_id = self._v_aliases[service_id]
        return self.get_definition(service_id)

    def find_tagged_service_ids(self, tag: str) -> Dict[str, List[Dict[str, Any]]]:
        """Map service id -> list of attribute dicts for every tag `tag`."""
        return {
            service_id: definition.get_tag(tag)
            for service_id, definition in self._v_definitions.items()
            if definition.has_tag(tag)
        }

    # -- resources ----------------------------------------------------------

    def add_resource(self, path: str) -> None:
        """Track a file the definitions were loaded from."""
        if path not in self._v_resources:
            self._v_resources.append(path)

    def get_resources(self) -> List[str]:
        return list(self._v_resources)

    # -- compilation --------------------------------------------------------

    def add_compiler_pass(self, compiler_pass, priority: int = 0) -> 'ContainerBuilder':
        """
        Register a compiler pass.

        Passes run by descending priority; equal priorities keep
        registration order.
        """
        self._assert_not_compiled("add a compiler pass")
        if not callable(getattr(compiler_pass, 'process', None)):
            raise InvalidDefinitionException(
                f"{compiler_pass!r} is not a compiler pass (no process() method)"
            )
        self._v_passes.append((priority, len(self._v_passes), compiler_pass))
        return self

    def get_compiler_passes(self) -> list:
        return [p for _, _, p in sorted(self._v_passes, key=lambda t: (-t[0], t[1]))]

    def compile(self) -> None:
        """Run user compiler passes, then the built-in resolution/check passes."""
        self._assert_not_compiled("compile")
        for compiler_pass in self.get_compiler_passes() + default_passes():
            logger.debug("Running compiler pass %s", type(compiler_pass).__name__)
            compiler_pass.process(self)
        self._v_is_compiled = True
        logger.debug(
            "Container compiled: %d services, %d aliases, %d parameters",
            len(self._v_definitions), len(self._v_aliases), len(self._v_parameters)
        )

    @property
    def is_compiled(self) -> bool:
        return self._v_is_compiled

    def _assert_not_compiled(self, operation: str) -> None:
        if self._v_is_compiled:
            raise FrozenContainerException(operation)

    def __str__(self) -> str:
        return f"ContainerBuilder(services={len(self._v_definitions)}, compiled={self._v_is_compiled})"

    def __repr__(self) -> str:
        return self.__str__()
