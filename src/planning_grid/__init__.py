"""Editable fiscal-year planning grid engine."""

__version__ = "0.1.0"
