"""
Centralized Logging Package

Provides unified logging configuration for dibuild.
"""

from dibuild.logging.manager import LogManager, get_logger, setup_logging

__all__ = ['LogManager', 'get_logger', 'setup_logging']
