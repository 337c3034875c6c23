"""
Options objects

Each options class is a frozen pydantic model constructed with
from_dict(mapping, cwd=...).
"""

from .base import BaseOptions
from .finder import (
    FinderOptions,
    ServiceFileFinderOptions,
    CompilerPassFinderOptions,
    DEFAULT_SERVICE_FILES,
    DEFAULT_CPASS_PATTERN,
)
from .reader import ReaderOptions, ServiceReaderOptions, CompilerPassReaderOptions
from .compiler import ServiceCompilerOptions, DumpFormat
from .writer import ContainerWriterOptions, DEFAULT_CONTAINER_FILENAME

__all__ = [
    'BaseOptions',
    'FinderOptions',
    'ServiceFileFinderOptions',
    'CompilerPassFinderOptions',
    'DEFAULT_SERVICE_FILES',
    'DEFAULT_CPASS_PATTERN',
    'ReaderOptions',
    'ServiceReaderOptions',
    'CompilerPassReaderOptions',
    'ServiceCompilerOptions',
    'DumpFormat',
    'ContainerWriterOptions',
    'DEFAULT_CONTAINER_FILENAME',
]
