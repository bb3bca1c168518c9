"""
Client modules for external APIs.
"""

from .netease import NetEaseClient, LyricsResult

__all__ = [
    'NetEaseClient',
    'LyricsResult'
]
