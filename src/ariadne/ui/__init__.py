"""
User interface components for Ariadne.
"""

from .cli import AriadneCLI
from .display import DisplayManager

__all__ = [
    'AriadneCLI',
    'DisplayManager'
]
