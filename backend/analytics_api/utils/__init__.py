"""Utilities module for the analytics API.

This package contains shared utility functions used across the application.
"""

from .time_utils import (
    parse_iso_instant,
    parse_date_range,
)

__all__ = [
    "parse_iso_instant",
    "parse_date_range",
]
