"""
Preprocessing Layer

Windowed smoothing of the raw sample stream.
"""

from .windowing import SmoothingWindow

__all__ = [
    'SmoothingWindow',
]
