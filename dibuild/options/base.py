"""
Options base model

Options objects are frozen pydantic models built with from_dict(). The
mapping may use snake_case or camelCase keys; unspecified keys keep their
defaults and None values count as unspecified. Paths resolve against the
cwd passed to from_dict(), which travels in the validation context.
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationInfo
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from dibuild.exceptions import ValidationError


class BaseOptions(BaseModel):
    """Immutable, eagerly validated options record"""

    model_config = ConfigDict(
        frozen=True,
        extra='forbid',
        validate_default=True,
        populate_by_name=True,
        loc_by_alias=False,
        alias_generator=to_camel,
        arbitrary_types_allowed=True,
    )

    @classmethod
    def from_dict(
        cls,
        options: Optional[Mapping[str, Any]] = None,
        cwd: Optional[Union[str, Path]] = None,
    ):
        """
        Build validated options from a mapping.

        Args:
            options: Option name -> value (any subset)
            cwd: Base directory for relative paths (default: process cwd)

        Raises:
            ValidationError: A value has the wrong type, a required path does
                not exist or an enumerated value is not allowed
        """
        values = {key: value for key, value in dict(options or {}).items() if value is not None}
        base = Path(cwd) if cwd is not None else Path(os.getcwd())
        try:
            return cls.model_validate(values, context={'cwd': base})
        except PydanticValidationError as e:
            raise _convert(cls, e) from e

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


def _convert(options_class, error: PydanticValidationError) -> ValidationError:
    problems = []
    first_option = None
    for item in error.errors():
        option = '.'.join(str(part) for part in item.get('loc', ())) or None
        first_option = first_option or option
        message = item.get('msg', 'invalid value')
        problems.append(f"{option}: {message}" if option else message)
    return ValidationError(
        f"Invalid {options_class.__name__}: " + '; '.join(problems),
        option=first_option,
    )


def context_cwd(info: ValidationInfo) -> Path:
    if info.context and info.context.get('cwd') is not None:
        return Path(info.context['cwd'])
    return Path(os.getcwd())


def resolve_path(value: str, info: ValidationInfo) -> Path:
    path = Path(os.path.expanduser(value))
    if not path.is_absolute():
        path = context_cwd(info) / path
    return Path(os.path.normpath(path))


def split_values(value: Any) -> Any:
    """Accept 'a, b' strings as well as lists; drop blank entries."""
    if isinstance(value, str):
        value = value.split(',')
    if isinstance(value, (list, tuple, set, frozenset)):
        items: List[Any] = []
        for item in value:
            if item is None:
                continue
            if isinstance(item, (str, os.PathLike)):
                item = os.fspath(item).strip()
                if not item:
                    continue
            items.append(item)
        return items
    return value
