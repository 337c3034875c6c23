"""
Configuration package.
"""

from dibuild.config.settings import (
    get_scan_directories,
    get_scan_files,
    get_dump_format,
    get_cpass_pattern,
    get_log_level,
    get_log_dir,
    split_list,
)

__all__ = [
    'get_scan_directories',
    'get_scan_files',
    'get_dump_format',
    'get_cpass_pattern',
    'get_log_level',
    'get_log_dir',
    'split_list',
]
