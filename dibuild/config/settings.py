"""
Configuration management module.

Environment driven defaults for the command line. Options objects never
read these values themselves; the CLI passes them in explicitly.
"""

import os
from dotenv import load_dotenv

# .env in the working directory
load_dotenv()

ENV_PREFIX = 'DIBUILD_'

DEFAULT_SCAN_DIRECTORIES = '.'
DEFAULT_LOG_LEVEL = 'WARNING'


def _env(name: str, default: str = '') -> str:
    return os.getenv(f'{ENV_PREFIX}{name}', default).strip()


def get_scan_directories() -> str:
    """Comma separated directories scanned when -d is not given."""
    return _env('SCAN_DIRECTORIES', DEFAULT_SCAN_DIRECTORIES) or DEFAULT_SCAN_DIRECTORIES


def get_scan_files() -> str:
    """Comma separated service file names; empty means the finder defaults."""
    return _env('SCAN_FILES')


def get_dump_format() -> str:
    return _env('DUMP_FORMAT')


def get_cpass_pattern() -> str:
    return _env('CPASS_PATTERN')


def get_log_level() -> str:
    return (_env('LOG_LEVEL', DEFAULT_LOG_LEVEL) or DEFAULT_LOG_LEVEL).upper()


def get_log_dir() -> str:
    return _env('LOG_DIR')


def split_list(value: str) -> list:
    """Split a comma separated CLI/env value, dropping blanks."""
    if not value:
        return []
    return [item.strip() for item in value.split(',') if item.strip()]
