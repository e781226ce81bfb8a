"""Web application module for the blurify redaction service."""

from .api import app

__all__ = [
    "app",
]
