"""Jet Swap bridge authorization core."""

__version__ = "0.1.0"
