"""Utility helpers."""

from subsync.utils.logging import configure_logging

__all__ = ["configure_logging"]
