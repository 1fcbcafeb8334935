"""Minimum-transaction debt settlement engine."""

__version__ = "1.0.0"
