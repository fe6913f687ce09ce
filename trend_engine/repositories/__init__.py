"""Data access layer for the trend catalogue store."""
