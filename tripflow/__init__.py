"""Durable multi-step trip planning workflow."""

__version__ = "0.1.0"
