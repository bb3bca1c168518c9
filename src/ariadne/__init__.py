"""
Ariadne - resolve and merge music releases and tracks from many sources
into one canonical catalog.
"""

from .core.config import PROJECT_VERSION as __version__

__all__ = ['__version__']
