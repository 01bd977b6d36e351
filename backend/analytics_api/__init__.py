"""Analytics dashboard date range and export backend."""

__version__ = "1.0.0"
