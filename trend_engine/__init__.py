"""Trend Performance Analytics Engine."""

__version__ = "1.0.0"
