"""
dibuild command line interface
"""

from dibuild import __version__

__all__ = ['__version__']
