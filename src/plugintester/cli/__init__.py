"""CLI package for Plugintester."""

from .app import app

__all__ = ["app"]
