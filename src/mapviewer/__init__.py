"""Thematic map viewer engine: layer lifecycle and symbology."""

__version__ = "0.1.0"
