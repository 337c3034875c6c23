"""
Service definition model

A Definition describes how the runtime container builds one service:
which class or factory to call, with which arguments, and what to do
with the instance afterwards.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from .exceptions import InvalidDefinitionException


class InvalidBehavior(str, Enum):
    """What to do when a referenced service does not exist"""
    EXCEPTION = "exception"
    NULL = "null"


@dataclass(frozen=True)
class Reference:
    """Reference to another service by id"""
    id: str
    on_invalid: InvalidBehavior = InvalidBehavior.EXCEPTION

    @property
    def optional(self) -> bool:
        return self.on_invalid is InvalidBehavior.NULL

    def __str__(self) -> str:
        return f"@?{self.id}" if self.optional else f"@{self.id}"


Arguments = Union[List[Any], Dict[str, Any]]


@dataclass
class Definition:
    """Service definition"""
    class_: Optional[str] = None
    factory: Optional[str] = None
    arguments: Arguments = field(default_factory=list)
    calls: List[Tuple[str, Arguments]] = field(default_factory=list)
    tags: List[Dict[str, Any]] = field(default_factory=list)
    shared: bool = True
    public: bool = True
    file: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.arguments, (list, dict)):
            raise InvalidDefinitionException(
                f"arguments must be a list or a mapping, got {type(self.arguments).__name__}"
            )

    def validate(self, service_id: str) -> None:
        if not self.class_ and not self.factory:
            raise InvalidDefinitionException(
                "a service needs a 'class' or a 'factory'", service_id
            )
        for target in filter(None, (self.class_, self.factory)):
            if '.' not in target and '%' not in target:
                raise InvalidDefinitionException(
                    f"'{target}' is not a dotted import path (module.Name)", service_id
                )

    def add_argument(self, value: Any) -> 'Definition':
        if isinstance(self.arguments, dict):
            raise InvalidDefinitionException("cannot append a positional argument to keyword arguments")
        self.arguments.append(value)
        return self

    def set_argument(self, key: Union[int, str], value: Any) -> 'Definition':
        self.arguments[key] = value
        return self

    def add_method_call(self, method: str, arguments: Optional[Arguments] = None) -> 'Definition':
        self.calls.append((method, arguments if arguments is not None else []))
        return self

    def add_tag(self, name: str, **attributes) -> 'Definition':
        self.tags.append({'name': name, **attributes})
        return self

    def has_tag(self, name: str) -> bool:
        return any(tag.get('name') == name for tag in self.tags)

    def get_tag(self, name: str) -> List[Dict[str, Any]]:
        return [
            {k: v for k, v in tag.items() if k != 'name'}
            for tag in self.tags if tag.get('name') == name
        ]


def iter_values(value: Any):
    """Yield every leaf value of a nested list/dict structure."""
    if isinstance(value, dict):
        for item in value.values():
            yield from iter_values(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from iter_values(item)
    else:
        yield value


def iter_references(value: Any):
    for item in iter_values(value):
        if isinstance(item, Reference):
            yield item


def map_values(value: Any, fn):
    """Apply fn to every leaf of a nested list/dict structure."""
    if isinstance(value, dict):
        return {key: map_values(item, fn) for key, item in value.items()}
    if isinstance(value, list):
        return [map_values(item, fn) for item in value]
    if isinstance(value, tuple):
        return tuple(map_values(item, fn) for item in value)
    return fn(value)


def parse_reference(value: Any) -> Any:
    """
    Turn '@id' / '@?id' strings into References.

    '@@' escapes a literal leading '@'.
    """
    if not isinstance(value, str) or not value.startswith('@'):
        return value
    if value.startswith('@@'):
        return value[1:]
    if value.startswith('@?'):
        return Reference(value[2:], InvalidBehavior.NULL)
    return Reference(value[1:])

