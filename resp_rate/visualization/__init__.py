"""Visualization Package - Interactive session plots"""

from .interactive import SessionPlotter

__all__ = [
    'SessionPlotter',
]
