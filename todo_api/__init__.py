"""Infinity Todo: hierarchical task store and local HTTP API."""

__version__ = "0.1.0"
