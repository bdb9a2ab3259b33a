"""Weighted prize-wheel drawing engine."""

__version__ = "0.1.0"
