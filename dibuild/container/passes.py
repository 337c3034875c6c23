"""
Compiler passes

User passes subclass CompilerPass (or are plain process(container)
callables wrapped in CallablePass). The built-in passes below run after
every user pass, in the order returned by default_passes().
"""

import re
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Set

from .definition import Reference, iter_references, map_values
from .exceptions import (
    CircularReferenceException,
    InvalidDefinitionException,
    ParameterCircularReferenceException,
    ParameterNotFoundException,
    ServiceNotFoundException,
)

_PLACEHOLDER = re.compile(r'%%|%([^%\s]+)%')
_WHOLE_PLACEHOLDER = re.compile(r'%([^%\s]+)%')


class CompilerPass(ABC):
    """Base class for compiler passes"""

    # Passes with a higher priority run first
    priority: int = 0

    @abstractmethod
    def process(self, container) -> None:
        """Inspect or modify the ContainerBuilder"""
        pass


class CallablePass(CompilerPass):
    """Adapts a bare process(container) function"""

    def __init__(self, fn: Callable, name: Optional[str] = None, priority: int = 0):
        self._v_fn = fn
        self.name = name or getattr(fn, '__qualname__', repr(fn))
        self.priority = priority

    def process(self, container) -> None:
        self._v_fn(container)

    def __repr__(self) -> str:
        return f"CallablePass({self.name})"


class ParameterResolver:
    """Resolves %name% placeholders against a raw parameter bag"""

    def __init__(self, raw: Dict[str, Any]):
        self._v_raw = raw
        self._v_resolved: Dict[str, Any] = {}

    def resolve_all(self) -> Dict[str, Any]:
        for name in self._v_raw:
            self._get(name, ())
        return dict(self._v_resolved)

    def resolve_value(self, value: Any, source_id: Optional[str] = None) -> Any:
        return map_values(value, lambda item: self._resolve_string(item, (), source_id))

    def _get(self, name: str, stack: tuple, source_id: Optional[str] = None) -> Any:
        if name in self._v_resolved:
            return self._v_resolved[name]
        if name not in self._v_raw:
            raise ParameterNotFoundException(name, stack[-1] if stack else source_id)
        if name in stack:
            raise ParameterCircularReferenceException(list(stack) + [name])
        value = map_values(
            self._v_raw[name],
            lambda item: self._resolve_string(item, stack + (name,), source_id)
        )
        self._v_resolved[name] = value
        return value

    def _resolve_string(self, value: Any, stack: tuple, source_id: Optional[str]) -> Any:
        if not isinstance(value, str) or '%' not in value:
            return value

        whole = _WHOLE_PLACEHOLDER.fullmatch(value)
        if whole:
            return self._get(whole.group(1), stack, source_id)

        def _substitute(match):
            if match.group(0) == '%%':
                return '%'
            resolved = self._get(match.group(1), stack, source_id)
            if isinstance(resolved, (dict, list, tuple)):
                raise InvalidDefinitionException(
                    f"parameter '{match.group(1)}' is not a scalar and cannot be "
                    f"interpolated into '{value}'",
                    source_id
                )
            return str(resolved)

        return _PLACEHOLDER.sub(_substitute, value)


class ResolveParameterPlaceholdersPass(CompilerPass):
    """Replaces %name% placeholders in parameters and definitions"""

    def process(self, container) -> None:
        resolver = ParameterResolver(container.get_parameters())
        container.replace_parameters(resolver.resolve_all())

        for service_id, definition in container.get_definitions().items():
            if definition.class_:
                definition.class_ = resolver.resolve_value(definition.class_, service_id)
            if definition.factory:
                definition.factory = resolver.resolve_value(definition.factory, service_id)
            definition.arguments = resolver.resolve_value(definition.arguments, service_id)
            definition.calls = [
                (method, resolver.resolve_value(arguments, service_id))
                for method, arguments in definition.calls
            ]
            definition.tags = [resolver.resolve_value(tag, service_id) for tag in definition.tags]


class ResolveAliasesPass(CompilerPass):
    """Flattens alias chains and points references at concrete service ids"""

    def process(self, container) -> None:
        aliases = container.get_aliases()
        targets: Dict[str, str] = {}

        for alias in aliases:
            chain = [alias]
            target = aliases[alias]
            while target in aliases:
                if target in chain:
                    raise CircularReferenceException(chain + [target])
                chain.append(target)
                target = aliases[target]
            if not container.has_definition(target):
                raise ServiceNotFoundException(target, alias)
            targets[alias] = target

        for alias, target in targets.items():
            container.set_alias(alias, target)

        def _rewrite(value):
            if isinstance(value, Reference) and value.id in targets:
                return Reference(targets[value.id], value.on_invalid)
            return value

        for definition in container.get_definitions().values():
            definition.arguments = map_values(definition.arguments, _rewrite)
            definition.calls = [
                (method, map_values(arguments, _rewrite))
                for method, arguments in definition.calls
            ]


class CheckReferencesPass(CompilerPass):
    """Fails on references to services that do not exist"""

    def process(self, container) -> None:
        for service_id, definition in container.get_definitions().items():
            values = [definition.arguments] + [arguments for _, arguments in definition.calls]
            for reference in iter_references(values):
                if reference.optional:
                    continue
                if not container.has(reference.id):
                    raise ServiceNotFoundException(reference.id, service_id)


class CheckCircularReferencesPass(CompilerPass):
    """
    Detects cycles through constructor arguments.

    Method calls are not followed: the instance already exists when they
    run, so setter injection may close a loop.
    """

    def process(self, container) -> None:
        definitions = container.get_definitions()
        graph: Dict[str, List[str]] = {
            service_id: [
                ref.id for ref in iter_references(definition.arguments)
                if ref.id in definitions
            ]
            for service_id, definition in definitions.items()
        }

        checked: Set[str] = set()

        for start in graph:
            if start in checked:
                continue
            path: List[str] = [start]
            on_path = {start}
            stack = [iter(graph[start])]
            while stack:
                dependency = next(stack[-1], None)
                if dependency is None:
                    finished = path.pop()
                    on_path.discard(finished)
                    checked.add(finished)
                    stack.pop()
                    continue
                if dependency in on_path:
                    cycle_start = path.index(dependency)
                    raise CircularReferenceException(path[cycle_start:] + [dependency])
                if dependency in checked:
                    continue
                path.append(dependency)
                on_path.add(dependency)
                stack.append(iter(graph.get(dependency, [])))


def default_passes() -> List[CompilerPass]:
    return [
        ResolveParameterPlaceholdersPass(),
        ResolveAliasesPass(),
        CheckReferencesPass(),
        CheckCircularReferencesPass(),
    ]
