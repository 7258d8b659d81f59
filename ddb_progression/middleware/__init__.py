"""Middleware package for the progression API."""

from ddb_progression.middleware.error_handler import setup_error_handlers

__all__ = [
    "setup_error_handlers",
]
