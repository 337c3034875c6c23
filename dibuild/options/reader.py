"""
Reader options
"""

from .base import BaseOptions


class ReaderOptions(BaseOptions):
    # Skip and record malformed files instead of aborting the build
    ignore_errors: bool = False


class ServiceReaderOptions(ReaderOptions):
    pass


class CompilerPassReaderOptions(ReaderOptions):
    pass
