"""
Finder options
"""

import re
from typing import List, Optional

from pydantic import ValidationInfo, field_validator

from .base import BaseOptions, resolve_path, split_values

DEFAULT_SERVICE_FILES = ['services.yaml', 'services.yml', 'services.xml', 'services.json']
DEFAULT_CPASS_PATTERN = r'^.*\.cpass\.py$'
DEFAULT_EXCLUDED_DIRECTORIES = ['.git', '__pycache__', 'node_modules']


class FinderOptions(BaseOptions):
    """
    Where and what to scan.

    directories: Directories to walk recursively; must exist.
    files: File names matched in every directory. An entry containing a
        path separator is an explicit file path instead.
    find_first: Files processed before every other match, in this order.
    pattern: Optional regex searched in file names.
    excluded_directories: Directory names never descended into.
    """

    directories: List[str] = ['.']
    files: List[str] = []
    find_first: List[str] = []
    pattern: Optional[str] = None
    excluded_directories: List[str] = DEFAULT_EXCLUDED_DIRECTORIES

    @field_validator('directories', 'files', 'find_first', 'excluded_directories', mode='before')
    @classmethod
    def _split(cls, value):
        return split_values(value)

    @field_validator('directories')
    @classmethod
    def _check_directories(cls, value: List[str], info: ValidationInfo) -> List[str]:
        resolved = []
        for entry in value:
            path = resolve_path(entry, info)
            if not path.is_dir():
                raise ValueError(f"directory '{entry}' does not exist")
            if str(path) not in resolved:
                resolved.append(str(path))
        return resolved

    @field_validator('pattern', mode='before')
    @classmethod
    def _blank_pattern(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator('pattern')
    @classmethod
    def _check_pattern(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            try:
                re.compile(value)
            except re.error as e:
                raise ValueError(f"invalid regular expression '{value}': {e}")
        return value


class ServiceFileFinderOptions(FinderOptions):
    files: List[str] = DEFAULT_SERVICE_FILES


class CompilerPassFinderOptions(FinderOptions):
    pattern: Optional[str] = DEFAULT_CPASS_PATTERN

    @field_validator('pattern', mode='before')
    @classmethod
    def _blank_pattern(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_CPASS_PATTERN
        return value
