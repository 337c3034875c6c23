"""
dibuild - dependency injection container builder

Scans directories for service definition and compiler pass files, feeds
them to the embedded container framework (dibuild.container) and writes
the compiled container.
"""

__version__ = "1.0.0"
