"""Web application module for the blackline redaction service."""

from .api import app

__all__ = [
    "app",
]
