# daycare/utils/__init__.py
"""
Utilities shared across the application.
"""

from .datetime_utils import DateTimeUtils

__all__ = ['DateTimeUtils']
