"""
Service compiler options
"""

from enum import Enum
from typing import Any, Dict

from pydantic import Field, field_validator

from dibuild.events import BuildObserver

from .base import BaseOptions


class DumpFormat(str, Enum):
    """Serialization format of the compiled container"""
    PYTHON = "python"       # importable module
    XML = "xml"
    YAML = "yaml"
    JSON = "json"
    GRAPHVIZ = "graphviz"   # dot graph, not loadable

    @classmethod
    def values(cls) -> list:
        return [member.value for member in cls]


class ServiceCompilerOptions(BaseOptions):
    dump_format: DumpFormat = DumpFormat.PYTHON
    dump_options: Dict[str, Any] = {}
    observer: BuildObserver = Field(default_factory=BuildObserver)

    @field_validator('dump_format', mode='before')
    @classmethod
    def _normalize_format(cls, value):
        if isinstance(value, str):
            value = value.strip().lower()
            return value or DumpFormat.PYTHON
        return value
