"""
Backend package: Flask JSON API over the entry store.
"""

from .app import create_app

__all__ = ['create_app']
