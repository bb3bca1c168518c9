"""
Utility modules for Ariadne.
"""

from .string_utils import normalize_key, normalize_code, same_key, platform_key, is_placeholder_title, title_key
from .retry import retry_with_backoff, RetryError

__all__ = [
    'normalize_key',
    'normalize_code',
    'same_key',
    'platform_key',
    'is_placeholder_title',
    'title_key',
    'retry_with_backoff',
    'RetryError'
]
