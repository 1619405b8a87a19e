"""Headless comments API."""

__version__ = "1.1.1"
